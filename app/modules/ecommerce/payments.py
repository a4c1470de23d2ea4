"""
Pagos de pedidos de e-commerce

Mismo esquema que los pedidos de ventas, pero con ingresos MXN del área
VENTAS / VENTAS ECOMMERCE. Un movimiento solo puede ligarse a un pedido.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.modules.ledger.models import LedgerEntryMxn, EntryType
from app.modules.ecommerce.models import EcommercePedido, EcommercePedidoPayment
from app.modules.ecommerce.schemas import EcommercePaymentAttach
from app.modules.ecommerce.service import EcommercePedidoService, run_in_transaction
from app.modules.ventas.payments import payment_status_for, is_payment_entry

logger = logging.getLogger(__name__)


class EcommercePaymentService:

    def __init__(self, db: Session):
        self.db = db
        self.pedidos = EcommercePedidoService(db)

    def _payment_row(self, payment: EcommercePedidoPayment) -> Dict:
        entry = payment.ledger_entry
        return {
            "id": payment.id,
            "pedido_id": payment.pedido_id,
            "ledger_entry_id": payment.ledger_entry_id,
            "amount": entry.amount if entry else Decimal("0"),
            "concept": entry.concept if entry else None,
            "transaction_date": entry.transaction_date if entry else None,
            "internal_id": entry.internal_id if entry else None,
            "notes": payment.notes,
            "attached_by": payment.attached_by,
            "created_at": payment.created_at,
        }

    def _count(self, pedido_id: int) -> int:
        return self.db.query(func.count(EcommercePedidoPayment.id)).filter(
            EcommercePedidoPayment.pedido_id == pedido_id
        ).scalar() or 0

    def recalculate(self, pedido: EcommercePedido) -> EcommercePedido:
        paid = self.db.query(func.coalesce(func.sum(LedgerEntryMxn.amount), 0)).join(
            EcommercePedidoPayment, EcommercePedidoPayment.ledger_entry_id == LedgerEntryMxn.id
        ).filter(EcommercePedidoPayment.pedido_id == pedido.id).scalar()
        paid = Decimal(str(paid or 0))
        pedido.amount_paid = paid
        pedido.payment_status = payment_status_for(Decimal(pedido.total or 0), paid)
        self.db.flush()
        return pedido

    def sync_entry(self, entry: LedgerEntryMxn) -> Optional[EcommercePedido]:
        payment = self.db.query(EcommercePedidoPayment).filter(
            EcommercePedidoPayment.ledger_entry_id == entry.id
        ).first()
        if not payment:
            return None
        if not is_payment_entry(entry, settings.ECOMMERCE_PAYMENTS_SUBAREA):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="El movimiento está ligado como pago de un pedido de e-commerce; debe seguir siendo "
                       f"un ingreso de {settings.PAYMENTS_AREA} / {settings.ECOMMERCE_PAYMENTS_SUBAREA}"
            )
        pedido = self.pedidos.get_pedido(payment.pedido_id, lock=True)
        return self.recalculate(pedido)

    def get_available(self) -> List[LedgerEntryMxn]:
        """Ingresos de VENTAS ECOMMERCE que aún no están ligados a ningún pedido."""
        attached = self.db.query(EcommercePedidoPayment.ledger_entry_id)
        return self.db.query(LedgerEntryMxn).options(selectinload(LedgerEntryMxn.user)).filter(
            LedgerEntryMxn.area == settings.PAYMENTS_AREA,
            LedgerEntryMxn.subarea == settings.ECOMMERCE_PAYMENTS_SUBAREA,
            LedgerEntryMxn.entry_type == EntryType.INCOME.value,
            LedgerEntryMxn.id.notin_(attached)
        ).order_by(LedgerEntryMxn.transaction_date.desc(), LedgerEntryMxn.id.desc()).all()

    def get_payments(self, pedido_id: int) -> Dict:
        self.pedidos.get_pedido(pedido_id)
        payments = self.db.query(EcommercePedidoPayment).options(
            selectinload(EcommercePedidoPayment.ledger_entry)
        ).filter(EcommercePedidoPayment.pedido_id == pedido_id).order_by(EcommercePedidoPayment.id).all()
        rows = [self._payment_row(p) for p in payments]
        return {
            "payments": rows,
            "total_paid": sum((Decimal(r["amount"]) for r in rows), Decimal("0")),
            "payment_count": len(rows),
        }

    def attach(self, pedido_id: int, data: EcommercePaymentAttach, user_id: int) -> Dict:
        def operation():
            pedido = self.pedidos.get_pedido(pedido_id, lock=True)
            entry = self.db.get(LedgerEntryMxn, data.ledger_entry_id)
            if not entry:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Movimiento MXN no encontrado"
                )
            if entry.area != settings.PAYMENTS_AREA or entry.subarea != settings.ECOMMERCE_PAYMENTS_SUBAREA:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="El movimiento no pertenece a "
                           f"{settings.PAYMENTS_AREA} / {settings.ECOMMERCE_PAYMENTS_SUBAREA}"
                )
            if entry.entry_type != EntryType.INCOME.value:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Solo se pueden ligar ingresos como pagos"
                )
            existing = self.db.query(EcommercePedidoPayment.id).filter(
                EcommercePedidoPayment.ledger_entry_id == entry.id
            ).first()
            if existing:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="El movimiento ya está ligado a un pedido"
                )

            payment = EcommercePedidoPayment(
                pedido_id=pedido.id, ledger_entry_id=entry.id, notes=data.notes, attached_by=user_id
            )
            self.db.add(payment)
            self.db.flush()
            self.recalculate(pedido)
            logger.info(f"Pago {entry.internal_id} ligado al pedido {pedido.pedido_number}")
            return payment

        payment = run_in_transaction(self.db, "registro de pago de e-commerce", operation)
        self.db.refresh(payment)
        return self._payment_row(payment)

    def detach(self, payment_id: int) -> Dict[str, str]:
        def operation():
            payment = self.db.get(EcommercePedidoPayment, payment_id)
            if not payment:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Pago no encontrado"
                )
            pedido = self.pedidos.get_pedido(payment.pedido_id, lock=True)
            self.db.delete(payment)
            self.db.flush()
            self.recalculate(pedido)

        run_in_transaction(self.db, "eliminación de pago de e-commerce", operation)
        return {"message": "Pago desligado exitosamente"}

    def get_summary(self, pedido_id: int) -> Dict:
        pedido = self.pedidos.get_pedido(pedido_id)
        return {
            "pedido_id": pedido.id,
            "pedido_number": pedido.pedido_number,
            "total": pedido.total,
            "amount_paid": pedido.amount_paid,
            "amount_remaining": pedido.amount_remaining,
            "payment_status": pedido.payment_status,
            "payment_count": self._count(pedido.id),
        }
