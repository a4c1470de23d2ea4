"""
Servicios de negocio para el módulo de Producción

- Catálogos (tipo, tamaño, capacidad, color de esmalte)
- Productos con costos
- Inventario por etapa: CRUDO → SANCOCHADO → ESMALTADO, ajustes y mermas

Cada operación de inventario corre en una sola transacción y deja un
registro en la bitácora de movimientos.
"""

import logging
from typing import Dict, List, Optional, Type

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.database.database import Base
from app.modules.produccion.models import (
    Tipo, Size, Capacity, EsmalteColor, Product, ProduccionInventory, ProduccionMovement,
    Stage, ProductCategory, MovementType
)
from app.modules.produccion.schemas import (
    ProductCreate, ProductUpdate, StageInput, EsmaltadoInput, StageAdjustment, MermaInput
)
from app.modules.inventory.service import ReservationService, insufficient_stock

logger = logging.getLogger(__name__)


class MasterDataService:
    """CRUD genérico para los catálogos de producción."""

    LABELS: Dict[Type[Base], str] = {
        Tipo: "tipo",
        Size: "tamaño",
        Capacity: "capacidad",
        EsmalteColor: "color de esmalte",
    }

    ORDERING = {
        Tipo: Tipo.name,
        Size: Size.size_cm,
        Capacity: Capacity.capacity_ml,
        EsmalteColor: EsmalteColor.color,
    }

    def __init__(self, db: Session):
        self.db = db

    def list(self, model):
        return self.db.query(model).order_by(self.ORDERING[model]).all()

    def create(self, model, data: dict):
        label = self.LABELS[model]
        try:
            record = model(**data)
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
            return record
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe un {label} con ese valor"
            )
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error creando {label}: {str(e)}"
            )

    def delete(self, model, record_id: int) -> Dict[str, str]:
        label = self.LABELS[model]
        record = self.db.get(model, record_id)
        if not record:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No se encontró el {label}"
            )

        if self._is_referenced(model, record_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"No se puede eliminar el {label}: está en uso"
            )

        try:
            self.db.delete(record)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"No se puede eliminar el {label}: está en uso"
            )
        return {"message": f"El {label} se eliminó correctamente"}

    def _is_referenced(self, model, record_id: int) -> bool:
        column = {
            Tipo: Product.tipo_id,
            Size: Product.size_id,
            Capacity: Product.capacity_id,
            EsmalteColor: Product.esmalte_color_id,
        }[model]
        if self.db.query(Product.id).filter(column == record_id).first():
            return True
        if model is EsmalteColor:
            return self.db.query(ProduccionInventory.id).filter(
                ProduccionInventory.esmalte_color_id == record_id
            ).first() is not None
        return False


class ProductService:
    """Servicio de productos de producción"""

    def __init__(self, db: Session):
        self.db = db

    def _validate_references(self, data: dict) -> None:
        checks = [
            ("tipo_id", Tipo, "El tipo especificado no existe"),
            ("size_id", Size, "El tamaño especificado no existe"),
            ("capacity_id", Capacity, "La capacidad especificada no existe"),
            ("esmalte_color_id", EsmalteColor, "El color de esmalte especificado no existe"),
        ]
        for field, model, message in checks:
            value = data.get(field)
            if value is not None and not self.db.get(model, value):
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    def get_products(
        self,
        product_category: Optional[str] = None,
        stage: Optional[str] = None,
        tipo_id: Optional[int] = None,
        search: Optional[str] = None
    ) -> List[Product]:
        query = self.db.query(Product).options(
            selectinload(Product.tipo), selectinload(Product.size),
            selectinload(Product.capacity), selectinload(Product.esmalte_color)
        )
        if product_category:
            query = query.filter(Product.product_category == product_category)
        if stage:
            query = query.filter(Product.stage == stage)
        if tipo_id:
            query = query.filter(Product.tipo_id == tipo_id)
        if search:
            query = query.filter(or_(Product.name.ilike(f"%{search}%"), Product.notes.ilike(f"%{search}%")))
        return query.order_by(Product.name).all()

    def get_product(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Producto no encontrado"
            )
        return product

    def create_product(self, product_data: ProductCreate, user_id: int) -> Product:
        data = product_data.model_dump()
        self._validate_references(data)
        data["stage"] = product_data.stage.value
        data["product_category"] = product_data.product_category.value

        try:
            product = Product(**data, created_by=user_id)
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
            logger.info(f"Producto creado: {product.name} (id={product.id}, {product.product_category})")
            return product
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error creando producto: {str(e)}"
            )

    def update_product(self, product_id: int, product_update: ProductUpdate) -> Product:
        product = self.get_product(product_id)
        update_data = product_update.model_dump(exclude_unset=True)
        self._validate_references(update_data)

        if "tipo_id" in update_data and update_data["tipo_id"] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El tipo es requerido"
            )

        new_category = update_data.get("product_category")
        if new_category and new_category.value != product.product_category and self._has_stock(product):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="No se puede cambiar la categoría de un producto con inventario"
            )

        try:
            for field, value in update_data.items():
                if field in ("stage", "product_category") and value is not None:
                    value = value.value
                if field in ("name", "stage", "product_category") and value is None:
                    continue
                setattr(product, field, value)
            self.db.commit()
            self.db.refresh(product)
            return product
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error actualizando producto: {str(e)}"
            )

    def delete_product(self, product_id: int) -> Dict[str, str]:
        product = self.get_product(product_id)
        if self._has_stock(product):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="No se puede eliminar un producto con inventario o apartados"
            )

        try:
            self.db.query(ProduccionInventory).filter(ProduccionInventory.product_id == product_id).delete()
            self.db.query(ProduccionMovement).filter(ProduccionMovement.product_id == product_id).delete()
            self.db.delete(product)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="No se puede eliminar el producto: está referenciado en cotizaciones, pedidos o kits"
            )
        return {"message": "Producto eliminado correctamente"}

    def _has_stock(self, product: Product) -> bool:
        from app.modules.embalaje.models import EmbalajeInventory

        produccion = self.db.query(ProduccionInventory.id).filter(
            ProduccionInventory.product_id == product.id,
            or_(ProduccionInventory.quantity > 0, ProduccionInventory.apartados > 0)
        ).first()
        embalaje = self.db.query(EmbalajeInventory.id).filter(
            EmbalajeInventory.product_id == product.id,
            or_(EmbalajeInventory.quantity > 0, EmbalajeInventory.apartados > 0)
        ).first()
        return produccion is not None or embalaje is not None


class ProduccionInventoryService:
    """Inventario de cerámica por etapa"""

    def __init__(self, db: Session):
        self.db = db
        self.reservations = ReservationService(db)

    # ===== CONSULTAS =====

    def get_inventory(
        self,
        stage: Optional[str] = None,
        product_id: Optional[int] = None,
        esmalte_color_id: Optional[int] = None,
        include_empty: bool = False
    ) -> List[ProduccionInventory]:
        query = self.db.query(ProduccionInventory).join(Product).options(
            selectinload(ProduccionInventory.product).selectinload(Product.tipo),
            selectinload(ProduccionInventory.esmalte_color)
        )
        if not include_empty:
            query = query.filter(ProduccionInventory.quantity > 0)
        if stage:
            query = query.filter(ProduccionInventory.stage == stage)
        if product_id:
            query = query.filter(ProduccionInventory.product_id == product_id)
        if esmalte_color_id:
            query = query.filter(ProduccionInventory.esmalte_color_id == esmalte_color_id)
        return query.order_by(Product.name, ProduccionInventory.stage, ProduccionInventory.id).all()

    def get_movements(self, product_id: Optional[int] = None, limit: int = 100) -> List[ProduccionMovement]:
        query = self.db.query(ProduccionMovement).options(
            selectinload(ProduccionMovement.product),
            selectinload(ProduccionMovement.from_color),
            selectinload(ProduccionMovement.to_color),
            selectinload(ProduccionMovement.creator)
        )
        if product_id:
            query = query.filter(ProduccionMovement.product_id == product_id)
        return query.order_by(ProduccionMovement.created_at.desc(), ProduccionMovement.id.desc()).limit(limit).all()

    # ===== OPERACIONES =====

    def _ceramic_product(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Producto no encontrado"
            )
        if product.product_category != ProductCategory.CERAMICA.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"El producto '{product.name}' es de embalaje; use el inventario de embalaje"
            )
        return product

    def _color(self, color_id: Optional[int]) -> Optional[EsmalteColor]:
        if color_id is None:
            return None
        color = self.db.get(EsmalteColor, color_id)
        if not color:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El color de esmalte especificado no existe"
            )
        return color

    def _record(self, product_id: int, movement_type: MovementType, quantity: int, user_id: int, notes=None, **stages):
        self.db.add(ProduccionMovement(
            product_id=product_id,
            movement_type=movement_type.value,
            quantity=quantity,
            notes=notes,
            created_by=user_id,
            **stages
        ))

    def _take(self, product: Product, inventory: ProduccionInventory, quantity: int) -> None:
        if inventory.disponibles < quantity:
            raise insufficient_stock(product.name, inventory.stage, inventory.disponibles, quantity)
        inventory.quantity -= quantity

    def _run(self, operation: str, fn):
        try:
            result = fn()
            self.db.commit()
            return result
        except HTTPException:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Error de integridad en {operation}: {e}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Conflicto de integridad procesando {operation}"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error procesando {operation}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error procesando {operation}: {str(e)}"
            )

    def process_crudo_input(self, data: StageInput, user_id: int) -> List[ProduccionInventory]:
        def operation():
            product = self._ceramic_product(data.product_id)
            crudo = self.reservations.get_or_create_produccion(product.id, Stage.CRUDO.value, None)
            crudo.quantity += data.quantity
            self._record(product.id, MovementType.CRUDO_INPUT, data.quantity, user_id, data.notes,
                         to_stage=Stage.CRUDO.value)
            logger.info(f"CRUDO +{data.quantity} para {product.name}")
            return [crudo]

        return self._run("entrada CRUDO", operation)

    def process_sancochado(self, data: StageInput, user_id: int) -> List[ProduccionInventory]:
        def operation():
            product = self._ceramic_product(data.product_id)
            crudo = self.reservations.get_or_create_produccion(product.id, Stage.CRUDO.value, None)
            self._take(product, crudo, data.quantity)
            sancochado = self.reservations.get_or_create_produccion(product.id, Stage.SANCOCHADO.value, None)
            sancochado.quantity += data.quantity
            self._record(product.id, MovementType.SANCOCHADO_PROCESS, data.quantity, user_id, data.notes,
                         from_stage=Stage.CRUDO.value, to_stage=Stage.SANCOCHADO.value)
            logger.info(f"CRUDO → SANCOCHADO {data.quantity} para {product.name}")
            return [crudo, sancochado]

        return self._run("SANCOCHADO", operation)

    def process_esmaltado(self, data: EsmaltadoInput, user_id: int) -> List[ProduccionInventory]:
        def operation():
            product = self._ceramic_product(data.product_id)
            color = self._color(data.esmalte_color_id)
            sancochado = self.reservations.get_or_create_produccion(product.id, Stage.SANCOCHADO.value, None)
            self._take(product, sancochado, data.quantity)
            esmaltado = self.reservations.get_or_create_produccion(product.id, Stage.ESMALTADO.value, color.id)
            esmaltado.quantity += data.quantity
            self._record(product.id, MovementType.ESMALTADO_PROCESS, data.quantity, user_id, data.notes,
                         from_stage=Stage.SANCOCHADO.value, to_stage=Stage.ESMALTADO.value, to_color_id=color.id)
            logger.info(f"SANCOCHADO → ESMALTADO ({color.color}) {data.quantity} para {product.name}")
            return [sancochado, esmaltado]

        return self._run("ESMALTADO", operation)

    def process_adjustment(self, data: StageAdjustment, user_id: int) -> dict:
        def operation():
            product = self._ceramic_product(data.product_id)
            color = self._color(data.esmalte_color_id)
            inventory = self.reservations.get_or_create_produccion(
                product.id, data.stage.value, color.id if color else None
            )
            if data.quantity < inventory.apartados:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"No se puede ajustar a {data.quantity}: hay {inventory.apartados} piezas apartadas"
                )

            old_quantity = inventory.quantity
            adjustment = data.quantity - old_quantity
            inventory.quantity = data.quantity
            self._record(product.id, MovementType.ADJUSTMENT, adjustment, user_id, data.notes,
                         to_stage=data.stage.value, to_color_id=inventory.esmalte_color_id)
            logger.info(f"Ajuste {data.stage.value} {product.name}: {old_quantity} → {data.quantity}")
            return {
                "message": "Ajuste de inventario aplicado",
                "old_quantity": old_quantity,
                "new_quantity": data.quantity,
                "adjustment": adjustment,
                "inventory": inventory
            }

        return self._run("ajuste", operation)

    def process_merma(self, data: MermaInput, user_id: int) -> List[ProduccionInventory]:
        def operation():
            product = self._ceramic_product(data.product_id)
            color = self._color(data.esmalte_color_id)
            inventory = self.reservations.get_or_create_produccion(
                product.id, data.stage.value, color.id if color else None
            )
            self._take(product, inventory, data.quantity)
            self._record(product.id, MovementType.MERMA, -data.quantity, user_id, data.notes,
                         from_stage=data.stage.value, from_color_id=inventory.esmalte_color_id)
            logger.info(f"MERMA {data.stage.value} {product.name}: -{data.quantity}")
            return [inventory]

        return self._run("MERMA", operation)
