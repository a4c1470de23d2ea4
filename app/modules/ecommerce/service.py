"""
Servicios de E-commerce: kits y pedidos de tienda en línea

El stock de un kit siempre está respaldado por apartados sobre filas
ESMALTADO: subir el stock aparta piezas, bajarlo las libera. Un pedido
descuenta stock del kit sin tocar los apartados; estos se consumen hasta
que el pedido queda ENTREGADO_Y_PAGADO.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.common.utils import next_document_number
from app.modules.produccion.models import (
    Product, EsmalteColor, ProduccionInventory, Stage, ProductCategory
)
from app.modules.ecommerce.models import (
    Kit, KitItem, KitAllocation, EcommercePedido, EcommercePedidoItem, EcommercePedidoStatus
)
from app.modules.ecommerce.schemas import (
    KitCreate, KitUpdate, KitItemCreate, StockAdjustment, EcommercePedidoCreate, EcommercePedidoUpdate
)
from app.modules.inventory.service import ReservationService, insufficient_stock
from app.modules.ventas.payments import payment_status_for

logger = logging.getLogger(__name__)


def run_in_transaction(db: Session, operation: str, fn):
    try:
        result = fn()
        db.commit()
        return result
    except HTTPException:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error de integridad en {operation}: {e}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Conflicto de integridad en {operation}"
        )
    except Exception as e:
        db.rollback()
        logger.error(f"Error en {operation}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error en {operation}: {str(e)}"
        )


def matches_item(inventory: ProduccionInventory, item: KitItem) -> bool:
    """Un kit sin color acepta piezas esmaltadas de cualquier color."""
    if inventory.product_id != item.product_id:
        return False
    return item.esmalte_color_id is None or inventory.esmalte_color_id == item.esmalte_color_id


class KitService:

    def __init__(self, db: Session):
        self.db = db
        self.reservations = ReservationService(db)

    # ===== CONSULTAS =====

    def get_kits(self, search: Optional[str] = None, active_only: bool = False) -> List[Kit]:
        query = self.db.query(Kit).options(
            selectinload(Kit.items).selectinload(KitItem.product),
            selectinload(Kit.items).selectinload(KitItem.esmalte_color)
        )
        if active_only:
            query = query.filter(Kit.is_active.is_(True))
        if search:
            term = f"%{search}%"
            query = query.filter(or_(Kit.name.ilike(term), Kit.sku.ilike(term)))
        return query.order_by(Kit.name).all()

    def get_kit(self, kit_id: int, lock: bool = False) -> Kit:
        query = self.db.query(Kit).filter(Kit.id == kit_id)
        if lock:
            query = query.with_for_update()
        kit = query.first()
        if not kit:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Kit no encontrado"
            )
        return kit

    def get_available_inventory(self) -> List[ProduccionInventory]:
        rows = self.db.query(ProduccionInventory).join(Product).options(
            selectinload(ProduccionInventory.product).selectinload(Product.tipo),
            selectinload(ProduccionInventory.esmalte_color)
        ).filter(
            ProduccionInventory.stage == Stage.ESMALTADO.value,
            ProduccionInventory.quantity > ProduccionInventory.apartados
        ).order_by(Product.name, ProduccionInventory.id).all()
        return rows

    # ===== ALTA, CAMBIOS Y BAJA =====

    def _build_items(self, items: List[KitItemCreate]) -> List[KitItem]:
        built = []
        for item in items:
            product = self.db.get(Product, item.product_id)
            if not product:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Producto {item.product_id} no encontrado"
                )
            if product.product_category != ProductCategory.CERAMICA.value:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"El producto '{product.name}' no es de cerámica y no puede formar parte de un kit"
                )
            if item.esmalte_color_id and not self.db.get(EsmalteColor, item.esmalte_color_id):
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Color de esmalte {item.esmalte_color_id} no encontrado"
                )
            built.append(KitItem(
                product_id=product.id,
                esmalte_color_id=item.esmalte_color_id,
                quantity=item.quantity
            ))
        return built

    def _check_sku(self, sku: Optional[str], exclude_id: Optional[int] = None) -> None:
        if not sku:
            return
        query = self.db.query(Kit.id).filter(Kit.sku == sku)
        if exclude_id:
            query = query.filter(Kit.id != exclude_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe un kit con el SKU {sku}"
            )

    def create_kit(self, kit_data: KitCreate, user_id: int) -> Kit:
        def operation():
            self._check_sku(kit_data.sku)
            kit = Kit(
                **kit_data.model_dump(exclude={"items"}),
                current_stock=0,
                created_by=user_id
            )
            kit.items = self._build_items(kit_data.items)
            self.db.add(kit)
            self.db.flush()
            return kit

        kit = run_in_transaction(self.db, "creación de kit", operation)
        self.db.refresh(kit)
        logger.info(f"Kit '{kit.name}' creado con {len(kit.items)} productos")
        return kit

    def update_kit(self, kit_id: int, kit_data: KitUpdate) -> Kit:
        def operation():
            kit = self.get_kit(kit_id, lock=True)
            data = kit_data.model_dump(exclude_unset=True, exclude={"items"})
            if "sku" in data:
                self._check_sku(data["sku"], exclude_id=kit.id)

            min_stock = data.get("min_stock", kit.min_stock)
            max_stock = data.get("max_stock", kit.max_stock)
            if min_stock > max_stock:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="min_stock no puede ser mayor que max_stock"
                )
            if max_stock < kit.current_stock:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"max_stock no puede ser menor que el stock actual ({kit.current_stock})"
                )

            for field, value in data.items():
                if field == "name" and not (value or "").strip():
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail="El nombre del kit es requerido"
                    )
                setattr(kit, field, value)

            if kit_data.items is not None:
                if kit.allocations:
                    raise HTTPException(
                        status_code=status.HTTP_409_CONFLICT,
                        detail="No se pueden cambiar los productos de un kit con inventario apartado; ajuste su stock a 0 primero"
                    )
                kit.items.clear()
                self.db.flush()
                kit.items.extend(self._build_items(kit_data.items))
            self.db.flush()
            return kit

        kit = run_in_transaction(self.db, "actualización de kit", operation)
        self.db.refresh(kit)
        return kit

    def delete_kit(self, kit_id: int) -> Dict[str, str]:
        def operation():
            kit = self.get_kit(kit_id, lock=True)
            if kit.current_stock > 0 or kit.allocations:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="No se puede eliminar un kit con stock o inventario apartado"
                )
            in_orders = self.db.query(EcommercePedidoItem.id).filter(EcommercePedidoItem.kit_id == kit.id).first()
            if in_orders:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="No se puede eliminar un kit que aparece en pedidos; desactívelo en su lugar"
                )
            self.db.delete(kit)
            self.db.flush()

        run_in_transaction(self.db, "eliminación de kit", operation)
        return {"message": "Kit eliminado exitosamente"}

    # ===== STOCK =====

    def adjust_stock(self, kit_id: int, data: StockAdjustment, user_id: int) -> Dict:
        """
        Ajusta el stock del kit apartando o liberando inventario ESMALTADO.

        Al subir, cada producto del kit aparta item.quantity * ajuste piezas,
        tomando primero las filas con más disponibles. Si algo falta, no se
        aplica nada.
        """
        if data.adjustment == 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El ajuste debe ser distinto de cero"
            )

        def operation():
            kit = self.get_kit(kit_id, lock=True)
            previous = kit.current_stock
            new_stock = previous + data.adjustment
            if new_stock < 0:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"El stock no puede quedar por debajo de 0 (actual: {previous})"
                )
            if new_stock > kit.max_stock:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"El stock no puede exceder el máximo de {kit.max_stock}"
                )

            if data.adjustment > 0:
                for item in kit.items:
                    self._allocate_item(kit, item, item.quantity * data.adjustment)
            else:
                for item in kit.items:
                    self._release_item(kit, item, item.quantity * -data.adjustment)

            kit.current_stock = new_stock
            self.db.flush()
            logger.info(f"Kit {kit.id} stock {previous} -> {new_stock} (usuario {user_id})")
            return {
                "message": "Stock ajustado exitosamente",
                "previous_stock": previous,
                "adjustment": data.adjustment,
                "new_stock": new_stock,
            }

        return run_in_transaction(self.db, "ajuste de stock de kit", operation)

    def _candidate_rows(self, item: KitItem) -> List[ProduccionInventory]:
        if item.esmalte_color_id is not None:
            return self.reservations.esmaltado_rows(item.product_id, item.esmalte_color_id, most_available_first=True)
        rows = self.db.query(ProduccionInventory).filter(
            ProduccionInventory.product_id == item.product_id,
            ProduccionInventory.stage == Stage.ESMALTADO.value
        ).order_by(ProduccionInventory.id).with_for_update().all()
        rows.sort(key=lambda r: r.disponibles, reverse=True)
        return rows

    def _allocate_item(self, kit: Kit, item: KitItem, required: int) -> None:
        rows = self._candidate_rows(item)
        available = sum(max(r.disponibles, 0) for r in rows)
        if available < required:
            product = self.db.get(Product, item.product_id)
            raise insufficient_stock(
                product.name if product else "Producto", Stage.ESMALTADO.value, available, required
            )

        remaining = required
        for inventory in rows:
            if remaining <= 0:
                break
            take = min(inventory.disponibles, remaining)
            if take <= 0:
                continue
            allocation = self.db.query(KitAllocation).filter(
                KitAllocation.kit_id == kit.id,
                KitAllocation.inventory_id == inventory.id
            ).first()
            if allocation:
                allocation.quantity_allocated += take
            else:
                self.db.add(KitAllocation(kit_id=kit.id, inventory_id=inventory.id, quantity_allocated=take))
            self.reservations.recalculate_produccion(inventory)
            remaining -= take

    def _item_allocations(self, kit: Kit, item: KitItem) -> List[KitAllocation]:
        allocations = self.db.query(KitAllocation).filter(
            KitAllocation.kit_id == kit.id
        ).order_by(KitAllocation.id).all()
        return [a for a in allocations if matches_item(self.reservations.lock_produccion(a.inventory_id), item)]

    def _release_item(self, kit: Kit, item: KitItem, amount: int) -> None:
        remaining = amount
        for allocation in self._item_allocations(kit, item):
            if remaining <= 0:
                break
            inventory_id = allocation.inventory_id
            release = min(allocation.quantity_allocated, remaining)
            if release == allocation.quantity_allocated:
                self.db.delete(allocation)
            else:
                allocation.quantity_allocated -= release
            self.db.flush()
            self.reservations.recalculate_produccion(self.reservations.lock_produccion(inventory_id))
            remaining -= release

    def consume_for_sale(self, kit: Kit, kits_sold: int, reference: str, user_id: Optional[int]) -> None:
        """Consume los apartados que respaldan kits vendidos: baja quantity y sube vendidos."""
        for item in kit.items:
            remaining = item.quantity * kits_sold
            consumed: Dict[int, int] = defaultdict(int)
            for allocation in self._item_allocations(kit, item):
                if remaining <= 0:
                    break
                take = min(allocation.quantity_allocated, remaining)
                consumed[allocation.inventory_id] += take
                if take == allocation.quantity_allocated:
                    self.db.delete(allocation)
                else:
                    allocation.quantity_allocated -= take
                remaining -= take
            self.db.flush()

            if remaining > 0:
                product = self.db.get(Product, item.product_id)
                raise insufficient_stock(
                    product.name if product else "Producto", Stage.ESMALTADO.value,
                    item.quantity * kits_sold - remaining, item.quantity * kits_sold
                )
            for inventory_id, quantity in sorted(consumed.items()):
                inventory = self.reservations.recalculate_produccion(self.reservations.lock_produccion(inventory_id))
                self.reservations.consume_produccion(inventory, quantity, True, reference, user_id)


class EcommercePedidoService:

    def __init__(self, db: Session):
        self.db = db
        self.kits = KitService(db)

    def get_pedidos(self, status_filter: Optional[str] = None, search: Optional[str] = None) -> List[EcommercePedido]:
        query = self.db.query(EcommercePedido).options(selectinload(EcommercePedido.items))
        if status_filter:
            query = query.filter(EcommercePedido.status == status_filter)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                EcommercePedido.customer_name.ilike(term),
                EcommercePedido.pedido_number.ilike(term),
                EcommercePedido.tracking_number.ilike(term)
            ))
        return query.order_by(EcommercePedido.created_at.desc(), EcommercePedido.id.desc()).all()

    def get_pedido(self, pedido_id: int, lock: bool = False) -> EcommercePedido:
        query = self.db.query(EcommercePedido).filter(EcommercePedido.id == pedido_id)
        if lock:
            query = query.with_for_update()
        pedido = query.first()
        if not pedido:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Pedido de e-commerce no encontrado"
            )
        return pedido

    def _take_stock(self, pedido: EcommercePedido) -> None:
        for item in pedido.items:
            kit = self.kits.get_kit(item.kit_id, lock=True)
            if kit.current_stock < item.quantity:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail={
                        "error": f"Stock insuficiente del kit '{kit.name}'",
                        "details": {
                            "kit_id": kit.id,
                            "available": kit.current_stock,
                            "requested": item.quantity,
                            "missing": item.quantity - kit.current_stock,
                        }
                    }
                )
            kit.current_stock -= item.quantity

    def _return_stock(self, pedido: EcommercePedido) -> None:
        for item in pedido.items:
            kit = self.kits.get_kit(item.kit_id, lock=True)
            if kit.current_stock + item.quantity > kit.max_stock:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Devolver {item.quantity} unidades excede el stock máximo del kit '{kit.name}'"
                )
            kit.current_stock += item.quantity

    def create_pedido(self, pedido_data: EcommercePedidoCreate, user_id: int) -> EcommercePedido:
        def operation():
            pedido = EcommercePedido(
                pedido_number=next_document_number(self.db, EcommercePedido.pedido_number, "ECO"),
                created_by=user_id,
                status=EcommercePedidoStatus.PENDING.value,
                **pedido_data.model_dump(exclude={"items"})
            )
            subtotal = Decimal("0")
            for line in pedido_data.items:
                kit = self.kits.get_kit(line.kit_id)
                unit_price = line.unit_price if line.unit_price is not None else Decimal(kit.price)
                line_subtotal = unit_price * line.quantity
                subtotal += line_subtotal
                pedido.items.append(EcommercePedidoItem(
                    kit_id=kit.id,
                    kit_name=kit.name,
                    kit_sku=kit.sku,
                    quantity=line.quantity,
                    unit_price=unit_price,
                    subtotal=line_subtotal
                ))
            pedido.subtotal = subtotal
            pedido.total = subtotal + pedido_data.shipping_cost - pedido_data.discount
            self._take_stock(pedido)
            self.db.add(pedido)
            self.db.flush()
            return pedido

        pedido = run_in_transaction(self.db, "creación de pedido de e-commerce", operation)
        self.db.refresh(pedido)
        logger.info(f"Pedido {pedido.pedido_number} creado ({pedido.total_kits} kits)")
        return pedido

    def update_pedido(self, pedido_id: int, pedido_data: EcommercePedidoUpdate) -> EcommercePedido:
        def operation():
            pedido = self.get_pedido(pedido_id, lock=True)
            for field, value in pedido_data.model_dump(exclude_unset=True).items():
                setattr(pedido, field, value)
            pedido.total = Decimal(pedido.subtotal) + Decimal(pedido.shipping_cost) - Decimal(pedido.discount)
            pedido.payment_status = payment_status_for(Decimal(pedido.total), Decimal(pedido.amount_paid or 0))
            self.db.flush()
            return pedido

        pedido = run_in_transaction(self.db, "actualización de pedido de e-commerce", operation)
        self.db.refresh(pedido)
        return pedido

    def update_status(self, pedido_id: int, new_status: EcommercePedidoStatus, user_id: int) -> EcommercePedido:
        def operation():
            pedido = self.get_pedido(pedido_id, lock=True)
            current = pedido.status
            target = new_status.value
            if current == EcommercePedidoStatus.ENTREGADO_Y_PAGADO.value:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="El pedido ya está entregado y pagado; no admite cambios de estado"
                )
            if current == target:
                return pedido

            if target == EcommercePedidoStatus.CANCELLED.value:
                self._return_stock(pedido)
            elif current == EcommercePedidoStatus.CANCELLED.value:
                self._take_stock(pedido)

            if target == EcommercePedidoStatus.SHIPPED.value:
                pedido.shipped_date = date.today()
            elif target == EcommercePedidoStatus.DELIVERED.value:
                pedido.delivered_date = date.today()
            elif target == EcommercePedidoStatus.ENTREGADO_Y_PAGADO.value:
                for item in pedido.items:
                    kit = self.kits.get_kit(item.kit_id, lock=True)
                    self.kits.consume_for_sale(kit, item.quantity, pedido.pedido_number, user_id)
                pedido.delivered_date = pedido.delivered_date or date.today()

            pedido.status = target
            self.db.flush()
            logger.info(f"Pedido {pedido.pedido_number}: {current} -> {target}")
            return pedido

        pedido = run_in_transaction(self.db, "cambio de estado de pedido de e-commerce", operation)
        self.db.refresh(pedido)
        return pedido

    def delete_pedido(self, pedido_id: int) -> Dict[str, str]:
        def operation():
            pedido = self.get_pedido(pedido_id, lock=True)
            if pedido.status not in (
                EcommercePedidoStatus.CANCELLED.value, EcommercePedidoStatus.ENTREGADO_Y_PAGADO.value
            ):
                self._return_stock(pedido)
            self.db.delete(pedido)
            self.db.flush()

        run_in_transaction(self.db, "eliminación de pedido de e-commerce", operation)
        return {"message": "Pedido eliminado exitosamente"}
