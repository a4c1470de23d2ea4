"""
Contabilidad de apartados (reservas) sobre el inventario

Reglas que mantiene este servicio:
- apartados de una fila = suma de las asignaciones activas que apuntan a ella
  (cerámica: pedidos de ventas + kits; embalaje: pedidos de ventas)
- 0 <= apartados <= quantity, y disponibles = quantity - apartados
- Consumir una asignación borra la asignación, recalcula apartados y
  después descuenta quantity (y opcionalmente suma vendidos)

Los servicios de ventas y e-commerce lo usan dentro de su propia transacción;
este servicio nunca hace commit.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.modules.produccion.models import (
    ProduccionInventory, ProduccionMovement, Stage, MovementType, Product
)
from app.modules.embalaje.models import EmbalajeInventory, EmbalajeMovement, EmbalajeMovementType
from app.modules.ventas.models import PedidoAllocation, PedidoEmbalajeAllocation, InventoryKind
from app.modules.ecommerce.models import KitAllocation

logger = logging.getLogger(__name__)


def insufficient_stock(product_name: str, stage: Optional[str], available: int, requested: int) -> HTTPException:
    """Error 400 con el detalle de faltante."""
    label = stage or "EMBALAJE"
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "error": f"Inventario {label} insuficiente",
            "details": {
                "product_name": product_name,
                "stage": stage,
                "available": available,
                "requested": requested,
                "missing": requested - available
            }
        }
    )


class ReservationService:
    """Recalcula, aparta y consume inventario respetando los invariantes de apartados."""

    def __init__(self, db: Session):
        self.db = db

    # ===== LECTURA Y BLOQUEO =====

    def lock_produccion(self, inventory_id: int) -> ProduccionInventory:
        inventory = self.db.query(ProduccionInventory).filter(
            ProduccionInventory.id == inventory_id
        ).with_for_update().first()
        if not inventory:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Registro de inventario no encontrado"
            )
        return inventory

    def lock_embalaje(self, inventory_id: int) -> EmbalajeInventory:
        inventory = self.db.query(EmbalajeInventory).filter(
            EmbalajeInventory.id == inventory_id
        ).with_for_update().first()
        if not inventory:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Registro de inventario de embalaje no encontrado"
            )
        return inventory

    def get_or_create_produccion(
        self, product_id: int, stage: str, color_id: Optional[int]
    ) -> ProduccionInventory:
        query = self.db.query(ProduccionInventory).filter(
            ProduccionInventory.product_id == product_id,
            ProduccionInventory.stage == stage
        )
        if color_id is None:
            query = query.filter(ProduccionInventory.esmalte_color_id.is_(None))
        else:
            query = query.filter(ProduccionInventory.esmalte_color_id == color_id)

        inventory = query.with_for_update().first()
        if inventory:
            return inventory

        inventory = ProduccionInventory(
            product_id=product_id,
            stage=stage,
            esmalte_color_id=color_id,
            quantity=0,
            apartados=0,
            vendidos=0
        )
        self.db.add(inventory)
        self.db.flush()
        return inventory

    def get_or_create_embalaje(self, product_id: int) -> EmbalajeInventory:
        inventory = self.db.query(EmbalajeInventory).filter(
            EmbalajeInventory.product_id == product_id
        ).with_for_update().first()
        if inventory:
            return inventory

        inventory = EmbalajeInventory(product_id=product_id, quantity=0, apartados=0, vendidos=0)
        self.db.add(inventory)
        self.db.flush()
        return inventory

    def esmaltado_rows(
        self, product_id: int, color_id: Optional[int], most_available_first: bool = False
    ) -> List[ProduccionInventory]:
        """Filas ESMALTADO de un producto/color, las más antiguas primero (o las de más disponibles)."""
        query = self.db.query(ProduccionInventory).filter(
            ProduccionInventory.product_id == product_id,
            ProduccionInventory.stage == Stage.ESMALTADO.value
        )
        if color_id is None:
            query = query.filter(ProduccionInventory.esmalte_color_id.is_(None))
        else:
            query = query.filter(ProduccionInventory.esmalte_color_id == color_id)

        rows = query.order_by(ProduccionInventory.id).with_for_update().all()
        if most_available_first:
            rows.sort(key=lambda r: r.disponibles, reverse=True)
        return rows

    # ===== RECÁLCULO =====

    def allocated_produccion(self, inventory_id: int) -> int:
        pedidos = self.db.query(
            func.coalesce(func.sum(PedidoAllocation.quantity_allocated), 0)
        ).filter(PedidoAllocation.inventory_id == inventory_id).scalar()
        kits = self.db.query(
            func.coalesce(func.sum(KitAllocation.quantity_allocated), 0)
        ).filter(KitAllocation.inventory_id == inventory_id).scalar()
        return int(pedidos or 0) + int(kits or 0)

    def allocated_embalaje(self, inventory_id: int) -> int:
        total = self.db.query(
            func.coalesce(func.sum(PedidoEmbalajeAllocation.quantity_allocated), 0)
        ).filter(PedidoEmbalajeAllocation.inventory_id == inventory_id).scalar()
        return int(total or 0)

    def recalculate_produccion(self, inventory: ProduccionInventory) -> ProduccionInventory:
        self.db.flush()
        total = self.allocated_produccion(inventory.id)
        if total > inventory.quantity:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Los apartados ({total}) excederían la existencia ({inventory.quantity}) del inventario {inventory.id}"
            )
        inventory.apartados = total
        self.db.flush()
        return inventory

    def recalculate_embalaje(self, inventory: EmbalajeInventory) -> EmbalajeInventory:
        self.db.flush()
        total = self.allocated_embalaje(inventory.id)
        if total > inventory.quantity:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Los apartados ({total}) excederían la existencia ({inventory.quantity}) del embalaje {inventory.id}"
            )
        inventory.apartados = total
        self.db.flush()
        return inventory

    # ===== CONSUMO =====

    def consume_produccion(
        self,
        inventory: ProduccionInventory,
        quantity: int,
        count_as_sold: bool,
        reference: Optional[str] = None,
        user_id: Optional[int] = None
    ) -> None:
        """
        Descuenta existencias ya liberadas de apartados.
        Debe llamarse después de borrar/reducir la asignación y recalcular.
        """
        if quantity <= 0:
            return
        if inventory.disponibles < quantity:
            product = self.db.get(Product, inventory.product_id)
            raise insufficient_stock(
                product.name if product else "Producto", inventory.stage, inventory.disponibles, quantity
            )

        inventory.quantity -= quantity
        if count_as_sold:
            inventory.vendidos = (inventory.vendidos or 0) + quantity

        self.db.add(ProduccionMovement(
            product_id=inventory.product_id,
            movement_type=MovementType.VENTA.value,
            from_stage=inventory.stage,
            from_color_id=inventory.esmalte_color_id,
            quantity=-quantity,
            reference=reference,
            created_by=user_id
        ))
        self.db.flush()
        logger.info(
            f"Consumo inventario {inventory.id}: -{quantity} "
            f"(vendidos={'sí' if count_as_sold else 'no'}, ref={reference})"
        )

    def consume_embalaje(
        self,
        inventory: EmbalajeInventory,
        quantity: int,
        count_as_sold: bool,
        reference: Optional[str] = None,
        user_id: Optional[int] = None
    ) -> None:
        if quantity <= 0:
            return
        if inventory.disponibles < quantity:
            product = self.db.get(Product, inventory.product_id)
            raise insufficient_stock(product.name if product else "Producto", None, inventory.disponibles, quantity)

        inventory.quantity -= quantity
        if count_as_sold:
            inventory.vendidos = (inventory.vendidos or 0) + quantity

        self.db.add(EmbalajeMovement(
            product_id=inventory.product_id,
            movement_type=EmbalajeMovementType.VENTA.value,
            quantity=-quantity,
            reference=reference,
            created_by=user_id
        ))
        self.db.flush()
        logger.info(f"Consumo embalaje {inventory.id}: -{quantity} (ref={reference})")

    def mark_sold(self, kind: str, inventory_id: int, quantity: int) -> None:
        """Suma a vendidos cantidades que ya salieron del inventario."""
        if kind == InventoryKind.EMBALAJE.value:
            inventory = self.lock_embalaje(inventory_id)
        else:
            inventory = self.lock_produccion(inventory_id)
        inventory.vendidos = (inventory.vendidos or 0) + quantity
        self.db.flush()

    # ===== PEDIDOS DE VENTAS =====

    def release_pedido(self, pedido_id: int) -> int:
        """Borra todas las asignaciones del pedido y recalcula apartados. Devuelve piezas liberadas."""
        released = 0
        produccion_ids = set()
        embalaje_ids = set()

        for allocation in self.db.query(PedidoAllocation).filter(PedidoAllocation.pedido_id == pedido_id).all():
            released += allocation.quantity_allocated
            produccion_ids.add(allocation.inventory_id)
            self.db.delete(allocation)
        for allocation in self.db.query(PedidoEmbalajeAllocation).filter(
            PedidoEmbalajeAllocation.pedido_id == pedido_id
        ).all():
            released += allocation.quantity_allocated
            embalaje_ids.add(allocation.inventory_id)
            self.db.delete(allocation)

        self.db.flush()
        for inventory_id in sorted(produccion_ids):
            self.recalculate_produccion(self.lock_produccion(inventory_id))
        for inventory_id in sorted(embalaje_ids):
            self.recalculate_embalaje(self.lock_embalaje(inventory_id))

        if released:
            logger.info(f"Pedido {pedido_id}: {released} piezas liberadas de apartados")
        return released

    def consume_pedido(
        self,
        pedido_id: int,
        count_as_sold: bool,
        reference: Optional[str] = None,
        user_id: Optional[int] = None
    ) -> List[Tuple[str, int, int]]:
        """
        Consume las asignaciones del pedido: se borran, se recalcula apartados
        y se descuenta quantity. Devuelve [(tipo_inventario, inventory_id, cantidad)].
        """
        produccion_totals: Dict[int, int] = defaultdict(int)
        embalaje_totals: Dict[int, int] = defaultdict(int)

        for allocation in self.db.query(PedidoAllocation).filter(PedidoAllocation.pedido_id == pedido_id).all():
            produccion_totals[allocation.inventory_id] += allocation.quantity_allocated
            self.db.delete(allocation)
        for allocation in self.db.query(PedidoEmbalajeAllocation).filter(
            PedidoEmbalajeAllocation.pedido_id == pedido_id
        ).all():
            embalaje_totals[allocation.inventory_id] += allocation.quantity_allocated
            self.db.delete(allocation)
        self.db.flush()

        consumed = []
        for inventory_id, quantity in sorted(produccion_totals.items()):
            inventory = self.recalculate_produccion(self.lock_produccion(inventory_id))
            self.consume_produccion(inventory, quantity, count_as_sold, reference, user_id)
            consumed.append((InventoryKind.CERAMICA.value, inventory_id, quantity))
        for inventory_id, quantity in sorted(embalaje_totals.items()):
            inventory = self.recalculate_embalaje(self.lock_embalaje(inventory_id))
            self.consume_embalaje(inventory, quantity, count_as_sold, reference, user_id)
            consumed.append((InventoryKind.EMBALAJE.value, inventory_id, quantity))
        return consumed

    # ===== INTEGRIDAD =====

    def audit(self) -> List[dict]:
        """Filas cuyo contador apartados no coincide con la suma de asignaciones."""
        mismatches = []
        for inventory in self.db.query(ProduccionInventory).order_by(ProduccionInventory.id).all():
            expected = self.allocated_produccion(inventory.id)
            if expected != inventory.apartados:
                mismatches.append({
                    "inventory_kind": InventoryKind.CERAMICA.value,
                    "inventory_id": inventory.id,
                    "product_name": inventory.product_name,
                    "quantity": inventory.quantity,
                    "apartados": inventory.apartados,
                    "expected_apartados": expected
                })
        for inventory in self.db.query(EmbalajeInventory).order_by(EmbalajeInventory.id).all():
            expected = self.allocated_embalaje(inventory.id)
            if expected != inventory.apartados:
                mismatches.append({
                    "inventory_kind": InventoryKind.EMBALAJE.value,
                    "inventory_id": inventory.id,
                    "product_name": inventory.product_name,
                    "quantity": inventory.quantity,
                    "apartados": inventory.apartados,
                    "expected_apartados": expected
                })
        return mismatches

    def repair(self) -> List[dict]:
        """Recalcula los contadores desalineados y confirma la transacción."""
        mismatches = self.audit()
        try:
            for row in mismatches:
                if row["inventory_kind"] == InventoryKind.EMBALAJE.value:
                    self.recalculate_embalaje(self.lock_embalaje(row["inventory_id"]))
                else:
                    self.recalculate_produccion(self.lock_produccion(row["inventory_id"]))
            self.db.commit()
        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error reparando apartados: {str(e)}"
            )
        if mismatches:
            logger.warning(f"Se repararon {len(mismatches)} contadores de apartados")
        return mismatches
