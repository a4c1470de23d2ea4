"""
Inventario de embalaje

Las operaciones reciben un lote de partidas y se aplican en una sola
transacción: si una partida falla, ninguna se aplica.
"""

import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.modules.produccion.models import Product, ProductCategory
from app.modules.embalaje.models import EmbalajeInventory, EmbalajeMovement, EmbalajeMovementType
from app.modules.embalaje.schemas import EmbalajeBatch, EmbalajeAdjustBatch
from app.modules.inventory.service import ReservationService, insufficient_stock

logger = logging.getLogger(__name__)


class EmbalajeService:

    def __init__(self, db: Session):
        self.db = db
        self.reservations = ReservationService(db)

    def get_inventory(self, include_empty: bool = True) -> List[EmbalajeInventory]:
        query = self.db.query(EmbalajeInventory).join(Product).options(
            selectinload(EmbalajeInventory.product).selectinload(Product.tipo)
        )
        if not include_empty:
            query = query.filter(EmbalajeInventory.quantity > 0)
        return query.order_by(Product.name).all()

    def get_movements(self, product_id: Optional[int] = None, limit: int = 100) -> List[EmbalajeMovement]:
        query = self.db.query(EmbalajeMovement).options(
            selectinload(EmbalajeMovement.product), selectinload(EmbalajeMovement.creator)
        )
        if product_id:
            query = query.filter(EmbalajeMovement.product_id == product_id)
        return query.order_by(EmbalajeMovement.created_at.desc(), EmbalajeMovement.id.desc()).limit(limit).all()

    def _embalaje_product(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Producto {product_id} no encontrado"
            )
        if product.product_category != ProductCategory.EMBALAJE.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"El producto '{product.name}' no es de categoría EMBALAJE"
            )
        return product

    def _apply(self, operation: str, fn) -> List[EmbalajeInventory]:
        try:
            rows = fn()
            self.db.commit()
            return rows
        except HTTPException:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Error de integridad en {operation} de embalaje: {e}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Conflicto de integridad en {operation} de embalaje"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error en {operation} de embalaje: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error en {operation} de embalaje: {str(e)}"
            )

    def add(self, batch: EmbalajeBatch, user_id: int) -> List[EmbalajeInventory]:
        def operation():
            rows = []
            for item in batch.items:
                product = self._embalaje_product(item.product_id)
                inventory = self.reservations.get_or_create_embalaje(product.id)
                inventory.quantity += item.quantity
                self.db.add(EmbalajeMovement(
                    product_id=product.id,
                    movement_type=EmbalajeMovementType.INPUT.value,
                    quantity=item.quantity,
                    notes=item.notes,
                    created_by=user_id
                ))
                rows.append(inventory)
            self.db.flush()
            logger.info(f"Entrada de embalaje: {len(batch.items)} partidas")
            return rows

        return self._apply("entrada", operation)

    def remove(self, batch: EmbalajeBatch, user_id: int) -> List[EmbalajeInventory]:
        def operation():
            rows = []
            for item in batch.items:
                product = self._embalaje_product(item.product_id)
                inventory = self.reservations.get_or_create_embalaje(product.id)
                if inventory.disponibles < item.quantity:
                    raise insufficient_stock(product.name, None, inventory.disponibles, item.quantity)
                inventory.quantity -= item.quantity
                self.db.add(EmbalajeMovement(
                    product_id=product.id,
                    movement_type=EmbalajeMovementType.OUTPUT.value,
                    quantity=-item.quantity,
                    notes=item.notes,
                    created_by=user_id
                ))
                self.db.flush()
                rows.append(inventory)
            logger.info(f"Salida de embalaje: {len(batch.items)} partidas")
            return rows

        return self._apply("salida", operation)

    def adjust(self, batch: EmbalajeAdjustBatch, user_id: int) -> List[EmbalajeInventory]:
        def operation():
            rows = []
            for item in batch.items:
                product = self._embalaje_product(item.product_id)
                inventory = self.reservations.get_or_create_embalaje(product.id)
                if item.quantity < inventory.apartados:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"No se puede ajustar '{product.name}' a {item.quantity}: "
                               f"hay {inventory.apartados} piezas apartadas"
                    )
                delta = item.quantity - inventory.quantity
                inventory.quantity = item.quantity
                self.db.add(EmbalajeMovement(
                    product_id=product.id,
                    movement_type=EmbalajeMovementType.ADJUSTMENT.value,
                    quantity=delta,
                    notes=item.notes,
                    created_by=user_id
                ))
                self.db.flush()
                rows.append(inventory)
            return rows

        return self._apply("ajuste", operation)
