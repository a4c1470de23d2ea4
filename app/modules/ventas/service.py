"""
Servicios de Ventas: cotizaciones y pedidos

Transiciones de estado de un pedido:
- a CONFIRMED: aparta automáticamente lo que falte, filas más antiguas primero
- a DELIVERED / ENTREGADO_Y_PAGADO: consume los apartados y registra lo entregado
- DELIVERED a ENTREGADO_Y_PAGADO: suma lo entregado a vendidos
- a CANCELLED: libera los apartados
ENTREGADO_Y_PAGADO es final y un pedido entregado solo avanza a ENTREGADO_Y_PAGADO.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.common.utils import next_document_number
from app.modules.produccion.models import Product, EsmalteColor, ProductCategory
from app.modules.ventas.models import (
    Quotation, QuotationItem, Pedido, PedidoItem, PedidoAllocation, PedidoEmbalajeAllocation,
    PedidoDelivery, PedidoStatus, InventoryKind
)
from app.modules.ventas.schemas import QuotationCreate, QuotationUpdate, QuotationItemCreate, PedidoCreate
from app.modules.inventory.service import ReservationService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

DELIVERED_STATUSES = (PedidoStatus.DELIVERED.value, PedidoStatus.ENTREGADO_Y_PAGADO.value)
CLOSED_STATUSES = DELIVERED_STATUSES + (PedidoStatus.CANCELLED.value,)


def line_totals(quantity: int, unit_price: Decimal, discount_percentage: Decimal,
                tax_percentage: Decimal) -> Dict[str, Decimal]:
    """Subtotal con descuento, impuesto y total de una partida, redondeados a centavos."""
    gross = Decimal(quantity) * Decimal(unit_price)
    subtotal = (gross * (Decimal(100) - Decimal(discount_percentage)) / Decimal(100)).quantize(CENT, ROUND_HALF_UP)
    tax_amount = (subtotal * Decimal(tax_percentage) / Decimal(100)).quantize(CENT, ROUND_HALF_UP)
    return {"subtotal": subtotal, "tax_amount": tax_amount, "total": subtotal + tax_amount}


def sum_totals(items) -> Dict[str, Decimal]:
    subtotal = sum((Decimal(i.subtotal) for i in items), Decimal("0"))
    tax_amount = sum((Decimal(i.tax_amount) for i in items), Decimal("0"))
    return {"subtotal": subtotal, "tax_amount": tax_amount, "total": subtotal + tax_amount}


class QuotationService:

    def __init__(self, db: Session):
        self.db = db

    def _snapshot_item(self, item: QuotationItemCreate) -> QuotationItem:
        """Copia los datos del producto a la partida para que la cotización no cambie con el catálogo."""
        product = self.db.get(Product, item.product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Producto {item.product_id} no encontrado"
            )
        color_id = item.esmalte_color_id or product.esmalte_color_id
        color = None
        if color_id:
            color = self.db.get(EsmalteColor, color_id)
            if not color:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Color de esmalte {color_id} no encontrado"
                )

        tax_percentage = item.tax_percentage
        if tax_percentage is None:
            tax_percentage = Decimal(str(settings.DEFAULT_TAX_PERCENTAGE))

        return QuotationItem(
            product_id=product.id,
            product_name=product.name,
            tipo_name=product.tipo_name,
            size_cm=product.size_cm,
            capacity_ml=product.capacity_ml,
            esmalte_color_id=color.id if color else None,
            esmalte_color=color.color if color else None,
            esmalte_hex_code=color.hex_code if color else None,
            quantity=item.quantity,
            unit_price=item.unit_price,
            discount_percentage=item.discount_percentage,
            tax_percentage=tax_percentage,
            notes=item.notes,
            **line_totals(item.quantity, item.unit_price, item.discount_percentage, tax_percentage)
        )

    def _save(self, quotation: Quotation, operation: str) -> Quotation:
        try:
            self.db.commit()
            self.db.refresh(quotation)
            return quotation
        except HTTPException:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Error de integridad al {operation} cotización: {e}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Conflicto al guardar la cotización, intente de nuevo"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error al {operation} cotización: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error al {operation} la cotización: {str(e)}"
            )

    def get_quotations(self, status_filter: Optional[str] = None, search: Optional[str] = None) -> List[Quotation]:
        query = self.db.query(Quotation).options(selectinload(Quotation.items))
        if status_filter:
            query = query.filter(Quotation.status == status_filter)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Quotation.customer_name.ilike(term),
                Quotation.quotation_number.ilike(term),
                Quotation.customer_email.ilike(term)
            ))
        return query.order_by(Quotation.created_at.desc(), Quotation.id.desc()).all()

    def get_quotation(self, quotation_id: int) -> Quotation:
        quotation = self.db.query(Quotation).options(
            selectinload(Quotation.items)
        ).filter(Quotation.id == quotation_id).first()
        if not quotation:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cotización no encontrada"
            )
        return quotation

    def create_quotation(self, quotation_data: QuotationCreate, user_id: int) -> Quotation:
        items = [self._snapshot_item(item) for item in quotation_data.items]
        quotation = Quotation(
            quotation_number=next_document_number(self.db, Quotation.quotation_number, "COT"),
            created_by=user_id,
            status=quotation_data.status.value,
            **quotation_data.model_dump(exclude={"items", "status"}),
            **sum_totals(items)
        )
        quotation.items = items
        self.db.add(quotation)
        quotation = self._save(quotation, "crear")
        logger.info(f"Cotización {quotation.quotation_number} creada ({len(items)} partidas, total {quotation.total})")
        return quotation

    def update_quotation(self, quotation_id: int, quotation_data: QuotationUpdate) -> Quotation:
        quotation = self.get_quotation(quotation_id)
        items = [self._snapshot_item(item) for item in quotation_data.items]

        for field, value in quotation_data.model_dump(exclude={"items", "status"}).items():
            setattr(quotation, field, value)
        if quotation_data.status:
            quotation.status = quotation_data.status.value

        quotation.items.clear()
        self.db.flush()
        quotation.items.extend(items)
        for field, value in sum_totals(items).items():
            setattr(quotation, field, value)
        return self._save(quotation, "actualizar")

    def delete_quotation(self, quotation_id: int) -> Dict[str, str]:
        quotation = self.get_quotation(quotation_id)
        if self.db.query(Pedido.id).filter(Pedido.quotation_id == quotation.id).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="No se puede eliminar una cotización que ya tiene pedidos"
            )
        self.db.delete(quotation)
        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error al eliminar cotización: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error al eliminar la cotización: {str(e)}"
            )
        return {"message": "Cotización eliminada exitosamente"}


class PedidoService:

    def __init__(self, db: Session):
        self.db = db
        self.reservations = ReservationService(db)

    def run(self, operation: str, fn):
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
                detail=f"Conflicto de integridad en {operation}"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error en {operation}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error en {operation}: {str(e)}"
            )

    # ===== CONSULTAS =====

    def get_pedidos(self, status_filter: Optional[str] = None, search: Optional[str] = None) -> List[Pedido]:
        query = self.db.query(Pedido).options(
            selectinload(Pedido.items).selectinload(PedidoItem.allocations),
            selectinload(Pedido.items).selectinload(PedidoItem.embalaje_allocations)
        )
        if status_filter:
            query = query.filter(Pedido.status == status_filter)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Pedido.customer_name.ilike(term),
                Pedido.pedido_number.ilike(term),
                Pedido.quotation_number.ilike(term)
            ))
        return query.order_by(Pedido.created_at.desc(), Pedido.id.desc()).all()

    def get_pedido(self, pedido_id: int, lock: bool = False) -> Pedido:
        query = self.db.query(Pedido).filter(Pedido.id == pedido_id)
        if lock:
            query = query.with_for_update()
        pedido = query.first()
        if not pedido:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Pedido no encontrado"
            )
        return pedido

    # ===== ALTA Y BAJA =====

    def create_pedido(self, pedido_data: PedidoCreate, user_id: int) -> Pedido:
        """Crea un pedido PENDING copiando cliente, términos y partidas de la cotización."""
        quotation = QuotationService(self.db).get_quotation(pedido_data.quotation_id)

        def operation():
            pedido = Pedido(
                pedido_number=next_document_number(self.db, Pedido.pedido_number, "PED"),
                quotation_id=quotation.id,
                quotation_number=quotation.quotation_number,
                customer_name=quotation.customer_name,
                customer_email=quotation.customer_email,
                customer_phone=quotation.customer_phone,
                customer_address=quotation.customer_address,
                expected_delivery_date=pedido_data.expected_delivery_date,
                payment_method=pedido_data.payment_method,
                notes=pedido_data.notes or quotation.notes,
                terms=quotation.terms,
                status=PedidoStatus.PENDING.value,
                subtotal=quotation.subtotal,
                tax_amount=quotation.tax_amount,
                total=quotation.total,
                amount_paid=0,
                created_by=user_id
            )
            for item in quotation.items:
                product = self.db.get(Product, item.product_id)
                category = product.product_category if product else ProductCategory.CERAMICA.value
                pedido.items.append(PedidoItem(
                    product_id=item.product_id,
                    product_category=category,
                    product_name=item.product_name,
                    tipo_name=item.tipo_name,
                    size_cm=item.size_cm,
                    capacity_ml=item.capacity_ml,
                    esmalte_color_id=item.esmalte_color_id,
                    esmalte_color=item.esmalte_color,
                    esmalte_hex_code=item.esmalte_hex_code,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    discount_percentage=item.discount_percentage,
                    tax_percentage=item.tax_percentage,
                    subtotal=item.subtotal,
                    tax_amount=item.tax_amount,
                    total=item.total,
                    notes=item.notes
                ))
            self.db.add(pedido)
            self.db.flush()
            return pedido

        pedido = self.run("creación de pedido", operation)
        self.db.refresh(pedido)
        logger.info(f"Pedido {pedido.pedido_number} creado desde {quotation.quotation_number}")
        return pedido

    def delete_pedido(self, pedido_id: int) -> Dict[str, str]:
        def operation():
            pedido = self.get_pedido(pedido_id, lock=True)
            if pedido.status in DELIVERED_STATUSES:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="No se puede eliminar un pedido entregado"
                )
            self.reservations.release_pedido(pedido.id)
            self.db.delete(pedido)
            self.db.flush()
            return pedido.pedido_number

        number = self.run("eliminación de pedido", operation)
        logger.info(f"Pedido {number} eliminado")
        return {"message": "Pedido eliminado exitosamente"}

    # ===== ESTADO =====

    def update_status(self, pedido_id: int, new_status: PedidoStatus, user_id: int) -> Dict:
        shortfalls: List[Dict] = []

        def operation():
            pedido = self.get_pedido(pedido_id, lock=True)
            current = pedido.status
            target = new_status.value

            if current == PedidoStatus.ENTREGADO_Y_PAGADO.value:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="El pedido ya está entregado y pagado; no admite cambios de estado"
                )
            if current == target:
                return pedido
            if current == PedidoStatus.DELIVERED.value and target == PedidoStatus.CANCELLED.value:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="No se puede cancelar un pedido ya entregado"
                )
            if current == PedidoStatus.DELIVERED.value and target != PedidoStatus.ENTREGADO_Y_PAGADO.value:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Un pedido entregado solo puede pasar a ENTREGADO_Y_PAGADO"
                )

            if target == PedidoStatus.CONFIRMED.value and current != PedidoStatus.CANCELLED.value:
                shortfalls.extend(self.auto_allocate(pedido, user_id))
            elif target in DELIVERED_STATUSES and current not in DELIVERED_STATUSES:
                self._deliver(pedido, count_as_sold=target == PedidoStatus.ENTREGADO_Y_PAGADO.value, user_id=user_id)
            elif target == PedidoStatus.ENTREGADO_Y_PAGADO.value and current == PedidoStatus.DELIVERED.value:
                self._mark_delivered_as_sold(pedido)
            elif target == PedidoStatus.CANCELLED.value:
                self.reservations.release_pedido(pedido.id)

            pedido.status = target
            self.db.flush()
            logger.info(f"Pedido {pedido.pedido_number}: {current} -> {target}")
            return pedido

        pedido = self.run("cambio de estado del pedido", operation)
        self.db.refresh(pedido)
        return {
            "message": f"Estado actualizado a {pedido.status}",
            "pedido": pedido,
            "shortfalls": shortfalls,
        }

    def auto_allocate(self, pedido: Pedido, user_id: Optional[int]) -> List[Dict]:
        """
        Aparta lo que falte de cada partida con el inventario disponible.
        Nunca aparta de más; devuelve los faltantes.
        """
        shortfalls = []
        for item in pedido.items:
            needed = item.quantity - item.quantity_allocated
            if needed <= 0:
                continue

            allocated = 0
            if item.product_category == InventoryKind.EMBALAJE.value:
                inventory = self.reservations.get_or_create_embalaje(item.product_id)
                take = min(inventory.disponibles, needed)
                if take > 0:
                    self.db.add(PedidoEmbalajeAllocation(
                        pedido_id=pedido.id, pedido_item_id=item.id, inventory_id=inventory.id,
                        quantity_allocated=take, allocated_by=user_id
                    ))
                    self.reservations.recalculate_embalaje(inventory)
                    allocated = take
            else:
                for inventory in self.reservations.esmaltado_rows(item.product_id, item.esmalte_color_id):
                    if allocated >= needed:
                        break
                    take = min(inventory.disponibles, needed - allocated)
                    if take <= 0:
                        continue
                    self.db.add(PedidoAllocation(
                        pedido_id=pedido.id, pedido_item_id=item.id, inventory_id=inventory.id,
                        quantity_allocated=take, allocated_by=user_id
                    ))
                    self.reservations.recalculate_produccion(inventory)
                    allocated += take

            if allocated < needed:
                shortfalls.append({
                    "pedido_item_id": item.id,
                    "product_name": item.product_name,
                    "requested": needed,
                    "allocated": allocated,
                    "missing": needed - allocated,
                })
        self.db.flush()
        self.db.expire(pedido, ["items"])
        if shortfalls:
            logger.warning(f"Pedido {pedido.pedido_number}: apartado incompleto en {len(shortfalls)} partidas")
        return shortfalls

    def _deliver(self, pedido: Pedido, count_as_sold: bool, user_id: int) -> None:
        consumed = self.reservations.consume_pedido(
            pedido.id, count_as_sold, reference=pedido.pedido_number, user_id=user_id
        )
        now = datetime.now(timezone.utc)
        for kind, inventory_id, quantity in consumed:
            self.db.add(PedidoDelivery(
                pedido_id=pedido.id,
                inventory_kind=kind,
                inventory_id=inventory_id,
                quantity=quantity,
                counted_as_sold=count_as_sold,
                delivered_at=now
            ))
        pedido.actual_delivery_date = date.today()
        self.db.expire(pedido, ["allocations", "embalaje_allocations", "items"])

    def _mark_delivered_as_sold(self, pedido: Pedido) -> None:
        deliveries = self.db.query(PedidoDelivery).filter(
            PedidoDelivery.pedido_id == pedido.id,
            PedidoDelivery.counted_as_sold.is_(False)
        ).all()
        for delivery in deliveries:
            self.reservations.mark_sold(delivery.inventory_kind, delivery.inventory_id, delivery.quantity)
            delivery.counted_as_sold = True
        self.db.flush()
