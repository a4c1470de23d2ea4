"""
Apartado manual de inventario para partidas de pedidos

Cerámica se aparta de filas ESMALTADO del mismo producto y color;
embalaje se aparta de la fila de embalaje del producto.
"""

import logging
from typing import Dict, List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.modules.produccion.models import ProduccionInventory, Stage
from app.modules.embalaje.models import EmbalajeInventory
from app.modules.ventas.models import (
    Pedido, PedidoItem, PedidoAllocation, PedidoEmbalajeAllocation, InventoryKind
)
from app.modules.ventas.schemas import AllocationCreate
from app.modules.ventas.service import PedidoService, CLOSED_STATUSES
from app.modules.inventory.service import ReservationService, insufficient_stock

logger = logging.getLogger(__name__)


class PedidoInventoryService:

    def __init__(self, db: Session):
        self.db = db
        self.pedidos = PedidoService(db)
        self.reservations = ReservationService(db)

    # ===== DISPONIBILIDAD =====

    def _availability(self, pedido: Pedido, kind: InventoryKind) -> List[Dict]:
        result = []
        for item in pedido.items:
            if item.product_category != kind.value:
                continue
            allocated = item.quantity_allocated
            if kind == InventoryKind.EMBALAJE:
                rows = self.db.query(EmbalajeInventory).filter(
                    EmbalajeInventory.product_id == item.product_id
                ).all()
            else:
                query = self.db.query(ProduccionInventory).filter(
                    ProduccionInventory.product_id == item.product_id,
                    ProduccionInventory.stage == Stage.ESMALTADO.value
                )
                if item.esmalte_color_id is None:
                    query = query.filter(ProduccionInventory.esmalte_color_id.is_(None))
                else:
                    query = query.filter(ProduccionInventory.esmalte_color_id == item.esmalte_color_id)
                rows = query.order_by(ProduccionInventory.id).all()

            still_needed = max(item.quantity - allocated, 0)
            total_cant = sum(row.quantity for row in rows)
            total_apartados = sum(row.apartados for row in rows)
            total_disponibles = total_cant - total_apartados
            result.append({
                "pedido_item_id": item.id,
                "product_id": item.product_id,
                "product_name": item.product_name,
                "product_category": item.product_category,
                "esmalte_color_id": item.esmalte_color_id,
                "esmalte_color": item.esmalte_color,
                "quantity_requested": item.quantity,
                "quantity_allocated": allocated,
                "still_needed": still_needed,
                "total_cant": total_cant,
                "total_apartados": total_apartados,
                "total_disponibles": total_disponibles,
                "shortfall": max(still_needed - total_disponibles, 0),
                "available_inventory": [
                    {
                        "inventory_id": row.id,
                        "stage": getattr(row, "stage", None),
                        "esmalte_color_id": getattr(row, "esmalte_color_id", None),
                        "esmalte_color": getattr(row, "esmalte_color_name", None),
                        "quantity": row.quantity,
                        "apartados": row.apartados,
                        "disponibles": row.disponibles,
                    }
                    for row in rows if row.disponibles > 0
                ],
            })
        return result

    def get_inventory_availability(self, pedido_id: int) -> List[Dict]:
        return self._availability(self.pedidos.get_pedido(pedido_id), InventoryKind.CERAMICA)

    def get_embalaje_availability(self, pedido_id: int) -> List[Dict]:
        return self._availability(self.pedidos.get_pedido(pedido_id), InventoryKind.EMBALAJE)

    def get_allocations(self, pedido_id: int) -> List[PedidoAllocation]:
        self.pedidos.get_pedido(pedido_id)
        return self.db.query(PedidoAllocation).filter(
            PedidoAllocation.pedido_id == pedido_id
        ).order_by(PedidoAllocation.id).all()

    def get_embalaje_allocations(self, pedido_id: int) -> List[PedidoEmbalajeAllocation]:
        self.pedidos.get_pedido(pedido_id)
        return self.db.query(PedidoEmbalajeAllocation).filter(
            PedidoEmbalajeAllocation.pedido_id == pedido_id
        ).order_by(PedidoEmbalajeAllocation.id).all()

    # ===== APARTAR =====

    def _open_item(self, pedido_item_id: int, kind: InventoryKind) -> PedidoItem:
        item = self.db.get(PedidoItem, pedido_item_id)
        if not item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Partida de pedido no encontrada"
            )
        pedido = self.pedidos.get_pedido(item.pedido_id, lock=True)
        if pedido.status in CLOSED_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"No se puede modificar el apartado de un pedido en estado {pedido.status}"
            )
        if item.product_category != kind.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"La partida es de categoría {item.product_category}"
            )
        return item

    def _check_quantity(self, item: PedidoItem, inventory, quantity: int) -> None:
        if quantity > inventory.disponibles:
            raise insufficient_stock(
                item.product_name, getattr(inventory, "stage", None), inventory.disponibles, quantity
            )
        still_needed = item.quantity - item.quantity_allocated
        if quantity > still_needed:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Solo faltan {max(still_needed, 0)} piezas por apartar para '{item.product_name}'"
            )

    def allocate(self, data: AllocationCreate, user_id: int) -> PedidoAllocation:
        def operation():
            item = self._open_item(data.pedido_item_id, InventoryKind.CERAMICA)
            inventory = self.reservations.lock_produccion(data.inventory_id)
            if (
                inventory.product_id != item.product_id
                or inventory.stage != Stage.ESMALTADO.value
                or inventory.esmalte_color_id != item.esmalte_color_id
            ):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="El inventario no corresponde al producto, color y etapa ESMALTADO de la partida"
                )
            self._check_quantity(item, inventory, data.quantity)

            allocation = PedidoAllocation(
                pedido_id=item.pedido_id,
                pedido_item_id=item.id,
                inventory_id=inventory.id,
                quantity_allocated=data.quantity,
                allocated_by=user_id
            )
            self.db.add(allocation)
            self.reservations.recalculate_produccion(inventory)
            logger.info(f"Apartado {data.quantity} de inventario {inventory.id} para partida {item.id}")
            return allocation

        allocation = self.pedidos.run("apartado de inventario", operation)
        self.db.refresh(allocation)
        return allocation

    def allocate_embalaje(self, data: AllocationCreate, user_id: int) -> PedidoEmbalajeAllocation:
        def operation():
            item = self._open_item(data.pedido_item_id, InventoryKind.EMBALAJE)
            inventory = self.reservations.lock_embalaje(data.inventory_id)
            if inventory.product_id != item.product_id:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="El inventario de embalaje no corresponde al producto de la partida"
                )
            self._check_quantity(item, inventory, data.quantity)

            allocation = PedidoEmbalajeAllocation(
                pedido_id=item.pedido_id,
                pedido_item_id=item.id,
                inventory_id=inventory.id,
                quantity_allocated=data.quantity,
                allocated_by=user_id
            )
            self.db.add(allocation)
            self.reservations.recalculate_embalaje(inventory)
            return allocation

        allocation = self.pedidos.run("apartado de embalaje", operation)
        self.db.refresh(allocation)
        return allocation

    # ===== LIBERAR =====

    def _release(self, model, allocation_id: int, kind: InventoryKind) -> Dict:
        allocation = self.db.get(model, allocation_id)
        if not allocation:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Apartado no encontrado"
            )
        pedido = self.pedidos.get_pedido(allocation.pedido_id, lock=True)
        if pedido.status in CLOSED_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"No se puede liberar el apartado de un pedido en estado {pedido.status}"
            )
        inventory_id = allocation.inventory_id
        released = allocation.quantity_allocated
        self.db.delete(allocation)
        self.db.flush()
        if kind == InventoryKind.EMBALAJE:
            self.reservations.recalculate_embalaje(self.reservations.lock_embalaje(inventory_id))
        else:
            self.reservations.recalculate_produccion(self.reservations.lock_produccion(inventory_id))
        return {"message": "Apartado liberado exitosamente", "quantity_released": released}

    def deallocate(self, allocation_id: int) -> Dict:
        return self.pedidos.run(
            "liberación de apartado",
            lambda: self._release(PedidoAllocation, allocation_id, InventoryKind.CERAMICA)
        )

    def deallocate_embalaje(self, allocation_id: int) -> Dict:
        return self.pedidos.run(
            "liberación de apartado de embalaje",
            lambda: self._release(PedidoEmbalajeAllocation, allocation_id, InventoryKind.EMBALAJE)
        )
