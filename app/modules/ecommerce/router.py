from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.ecommerce.models import EcommercePedidoStatus
from app.modules.ecommerce.service import KitService, EcommercePedidoService
from app.modules.ecommerce.payments import EcommercePaymentService
from app.modules.ventas.schemas import AvailablePayment
from app.modules.ecommerce.schemas import (
    KitCreate, KitUpdate, KitOut, KitDetailOut, StockAdjustment, StockAdjustmentResult, KitInventoryRow,
    EcommercePedidoCreate, EcommercePedidoUpdate, EcommercePedidoStatusUpdate, EcommercePedidoOut,
    EcommercePaymentAttach, EcommercePaymentOut, EcommercePedidoPaymentsResponse, EcommercePaymentSummary
)

kits_router = APIRouter(prefix="/ecommerce/kits", tags=["E-commerce - Kits"])
pedidos_router = APIRouter(prefix="/ecommerce/pedidos", tags=["E-commerce - Pedidos"])


# ===== KITS =====

@kits_router.get("/", response_model=List[KitOut])
def get_kits(
    search: Optional[str] = Query(None),
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return KitService(db).get_kits(search, active_only)


@kits_router.get("/inventory/available", response_model=List[KitInventoryRow])
def get_available_inventory(db: Session = Depends(get_db),
                            current_user: User = Depends(AuthDependencies.get_current_user)):
    """Filas ESMALTADO con piezas disponibles para armar kits."""
    return KitService(db).get_available_inventory()


@kits_router.get("/{kit_id}", response_model=KitDetailOut)
def get_kit(kit_id: int, db: Session = Depends(get_db),
            current_user: User = Depends(AuthDependencies.get_current_user)):
    return KitService(db).get_kit(kit_id)


@kits_router.post("/", response_model=KitOut, status_code=status.HTTP_201_CREATED)
def create_kit(kit_data: KitCreate, db: Session = Depends(get_db),
               current_user: User = Depends(AuthDependencies.get_current_user)):
    """
    Crear kit

    - El kit nace con stock 0; use /{kit_id}/stock para armar unidades
    - Un SKU vacío se guarda como nulo
    """
    return KitService(db).create_kit(kit_data, current_user.id)


@kits_router.put("/{kit_id}", response_model=KitOut)
def update_kit(kit_id: int, kit_data: KitUpdate, db: Session = Depends(get_db),
               current_user: User = Depends(AuthDependencies.get_current_user)):
    return KitService(db).update_kit(kit_id, kit_data)


@kits_router.delete("/{kit_id}")
def delete_kit(kit_id: int, db: Session = Depends(get_db),
               current_user: User = Depends(AuthDependencies.get_current_user)):
    return KitService(db).delete_kit(kit_id)


@kits_router.post("/{kit_id}/stock", response_model=StockAdjustmentResult)
def adjust_kit_stock(kit_id: int, data: StockAdjustment, db: Session = Depends(get_db),
                     current_user: User = Depends(AuthDependencies.get_current_user)):
    """Ajuste positivo aparta inventario ESMALTADO; negativo lo libera."""
    return KitService(db).adjust_stock(kit_id, data, current_user.id)


# ===== PEDIDOS =====

@pedidos_router.get("/", response_model=List[EcommercePedidoOut])
def get_pedidos(
    status_filter: Optional[EcommercePedidoStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return EcommercePedidoService(db).get_pedidos(status_filter.value if status_filter else None, search)


# ===== PAGOS: RUTAS FIJAS =====

@pedidos_router.get("/available", response_model=List[AvailablePayment])
@pedidos_router.get("/payments/available", response_model=List[AvailablePayment])
def get_available_payments(db: Session = Depends(get_db),
                           current_user: User = Depends(AuthDependencies.get_current_user)):
    """Ingresos MXN de VENTAS ECOMMERCE sin pedido ligado."""
    return EcommercePaymentService(db).get_available()


@pedidos_router.delete("/payments/{payment_id}")
def detach_payment(payment_id: int, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return EcommercePaymentService(db).detach(payment_id)


@pedidos_router.get("/{pedido_id}", response_model=EcommercePedidoOut)
def get_pedido(pedido_id: int, db: Session = Depends(get_db),
               current_user: User = Depends(AuthDependencies.get_current_user)):
    return EcommercePedidoService(db).get_pedido(pedido_id)


@pedidos_router.post("/", response_model=EcommercePedidoOut, status_code=status.HTTP_201_CREATED)
def create_pedido(pedido_data: EcommercePedidoCreate, db: Session = Depends(get_db),
                  current_user: User = Depends(AuthDependencies.get_current_user)):
    """Crea el pedido (folio ECO-AAAA-NNNN) y descuenta stock de cada kit."""
    return EcommercePedidoService(db).create_pedido(pedido_data, current_user.id)


@pedidos_router.put("/{pedido_id}", response_model=EcommercePedidoOut)
def update_pedido(pedido_id: int, pedido_data: EcommercePedidoUpdate, db: Session = Depends(get_db),
                  current_user: User = Depends(AuthDependencies.get_current_user)):
    return EcommercePedidoService(db).update_pedido(pedido_id, pedido_data)


@pedidos_router.patch("/{pedido_id}/status", response_model=EcommercePedidoOut)
def update_pedido_status(pedido_id: int, data: EcommercePedidoStatusUpdate, db: Session = Depends(get_db),
                         current_user: User = Depends(AuthDependencies.get_current_user)):
    return EcommercePedidoService(db).update_status(pedido_id, data.status, current_user.id)


@pedidos_router.delete("/{pedido_id}")
def delete_pedido(pedido_id: int, db: Session = Depends(get_db),
                  current_user: User = Depends(AuthDependencies.get_current_user)):
    return EcommercePedidoService(db).delete_pedido(pedido_id)


# ===== PAGOS =====

@pedidos_router.get("/{pedido_id}/payments", response_model=EcommercePedidoPaymentsResponse)
def get_pedido_payments(pedido_id: int, db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    return EcommercePaymentService(db).get_payments(pedido_id)


@pedidos_router.post("/{pedido_id}/payments", response_model=EcommercePaymentOut,
                     status_code=status.HTTP_201_CREATED)
def attach_payment(pedido_id: int, data: EcommercePaymentAttach, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    """Liga un ingreso de VENTAS ECOMMERCE y recalcula amount_paid / payment_status."""
    return EcommercePaymentService(db).attach(pedido_id, data, current_user.id)


@pedidos_router.get("/{pedido_id}/payments/summary", response_model=EcommercePaymentSummary)
def get_payment_summary(pedido_id: int, db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    return EcommercePaymentService(db).get_summary(pedido_id)
