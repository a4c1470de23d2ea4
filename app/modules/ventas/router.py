"""
Routers de Ventas

- /ventas/quotations: cotizaciones con partidas
- /ventas/pedidos: pedidos, apartado de inventario y pagos
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.ventas.models import QuotationStatus, PedidoStatus
from app.modules.ventas.service import QuotationService, PedidoService
from app.modules.ventas.allocations import PedidoInventoryService
from app.modules.ventas.payments import PaymentService
from app.modules.ventas.schemas import (
    QuotationCreate, QuotationUpdate, QuotationOut,
    PedidoCreate, PedidoStatusUpdate, PedidoOut, PedidoStatusResponse,
    ItemAvailability, AllocationCreate, AllocationOut,
    PaymentAttach, PaymentOut, PedidoPaymentsResponse, AvailablePayment, PaymentSummary
)

quotations_router = APIRouter(prefix="/ventas/quotations", tags=["Ventas - Cotizaciones"])
pedidos_router = APIRouter(prefix="/ventas/pedidos", tags=["Ventas - Pedidos"])


# ===== COTIZACIONES =====

@quotations_router.get("/", response_model=List[QuotationOut])
def get_quotations(
    status_filter: Optional[QuotationStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return QuotationService(db).get_quotations(status_filter.value if status_filter else None, search)


@quotations_router.get("/{quotation_id}", response_model=QuotationOut)
def get_quotation(quotation_id: int, db: Session = Depends(get_db),
                  current_user: User = Depends(AuthDependencies.get_current_user)):
    return QuotationService(db).get_quotation(quotation_id)


@quotations_router.post("/", response_model=QuotationOut, status_code=status.HTTP_201_CREATED)
def create_quotation(quotation_data: QuotationCreate, db: Session = Depends(get_db),
                     current_user: User = Depends(AuthDependencies.get_current_user)):
    """
    Crear cotización

    - **customer_name** y al menos una partida son requeridos
    - Cada partida copia nombre, tipo, tamaño, capacidad y color del producto
    - Folio automático COT-AAAA-NNNN
    """
    return QuotationService(db).create_quotation(quotation_data, current_user.id)


@quotations_router.put("/{quotation_id}", response_model=QuotationOut)
def update_quotation(quotation_id: int, quotation_data: QuotationUpdate, db: Session = Depends(get_db),
                     current_user: User = Depends(AuthDependencies.get_current_user)):
    """Reemplaza todas las partidas de la cotización."""
    return QuotationService(db).update_quotation(quotation_id, quotation_data)


@quotations_router.delete("/{quotation_id}")
def delete_quotation(quotation_id: int, db: Session = Depends(get_db),
                     current_user: User = Depends(AuthDependencies.get_current_user)):
    return QuotationService(db).delete_quotation(quotation_id)


# ===== PEDIDOS: RUTAS FIJAS =====

@pedidos_router.get("/payments/available", response_model=List[AvailablePayment])
def get_available_payments(db: Session = Depends(get_db),
                           current_user: User = Depends(AuthDependencies.get_current_user)):
    """Ingresos MXN de VENTAS MAYOREO sin pedido ligado."""
    return PaymentService(db).get_available()


@pedidos_router.delete("/payments/{payment_id}")
def detach_payment(payment_id: int, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return PaymentService(db).detach(payment_id)


@pedidos_router.post("/allocations", response_model=AllocationOut, status_code=status.HTTP_201_CREATED)
def allocate_inventory(data: AllocationCreate, db: Session = Depends(get_db),
                       current_user: User = Depends(AuthDependencies.get_current_user)):
    """Aparta piezas ESMALTADO para una partida de cerámica."""
    return PedidoInventoryService(db).allocate(data, current_user.id)


@pedidos_router.delete("/allocations/{allocation_id}")
def deallocate_inventory(allocation_id: int, db: Session = Depends(get_db),
                         current_user: User = Depends(AuthDependencies.get_current_user)):
    return PedidoInventoryService(db).deallocate(allocation_id)


@pedidos_router.post("/embalaje-allocations", response_model=AllocationOut, status_code=status.HTTP_201_CREATED)
def allocate_embalaje(data: AllocationCreate, db: Session = Depends(get_db),
                      current_user: User = Depends(AuthDependencies.get_current_user)):
    return PedidoInventoryService(db).allocate_embalaje(data, current_user.id)


@pedidos_router.delete("/embalaje-allocations/{allocation_id}")
def deallocate_embalaje(allocation_id: int, db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    return PedidoInventoryService(db).deallocate_embalaje(allocation_id)


# ===== PEDIDOS =====

@pedidos_router.get("/", response_model=List[PedidoOut])
def get_pedidos(
    status_filter: Optional[PedidoStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return PedidoService(db).get_pedidos(status_filter.value if status_filter else None, search)


@pedidos_router.get("/{pedido_id}", response_model=PedidoOut)
def get_pedido(pedido_id: int, db: Session = Depends(get_db),
               current_user: User = Depends(AuthDependencies.get_current_user)):
    return PedidoService(db).get_pedido(pedido_id)


@pedidos_router.post("/", response_model=PedidoOut, status_code=status.HTTP_201_CREATED)
def create_pedido(pedido_data: PedidoCreate, db: Session = Depends(get_db),
                  current_user: User = Depends(AuthDependencies.get_current_user)):
    """Crea un pedido desde una cotización (folio PED-AAAA-NNNN)."""
    return PedidoService(db).create_pedido(pedido_data, current_user.id)


@pedidos_router.patch("/{pedido_id}/status", response_model=PedidoStatusResponse)
def update_pedido_status(pedido_id: int, data: PedidoStatusUpdate, db: Session = Depends(get_db),
                         current_user: User = Depends(AuthDependencies.get_current_user)):
    """
    Cambiar estado del pedido

    - **CONFIRMED**: aparta inventario disponible y reporta faltantes
    - **DELIVERED**: descuenta del inventario lo apartado
    - **ENTREGADO_Y_PAGADO**: descuenta y suma a vendidos (estado final)
    - **CANCELLED**: libera los apartados
    """
    return PedidoService(db).update_status(pedido_id, data.status, current_user.id)


@pedidos_router.delete("/{pedido_id}")
def delete_pedido(pedido_id: int, db: Session = Depends(get_db),
                  current_user: User = Depends(AuthDependencies.get_current_user)):
    return PedidoService(db).delete_pedido(pedido_id)


@pedidos_router.get("/{pedido_id}/inventory", response_model=List[ItemAvailability])
def get_pedido_inventory(pedido_id: int, db: Session = Depends(get_db),
                         current_user: User = Depends(AuthDependencies.get_current_user)):
    return PedidoInventoryService(db).get_inventory_availability(pedido_id)


@pedidos_router.get("/{pedido_id}/allocations", response_model=List[AllocationOut])
def get_pedido_allocations(pedido_id: int, db: Session = Depends(get_db),
                           current_user: User = Depends(AuthDependencies.get_current_user)):
    return PedidoInventoryService(db).get_allocations(pedido_id)


@pedidos_router.get("/{pedido_id}/embalaje-inventory", response_model=List[ItemAvailability])
def get_pedido_embalaje_inventory(pedido_id: int, db: Session = Depends(get_db),
                                  current_user: User = Depends(AuthDependencies.get_current_user)):
    return PedidoInventoryService(db).get_embalaje_availability(pedido_id)


@pedidos_router.get("/{pedido_id}/embalaje-allocations", response_model=List[AllocationOut])
def get_pedido_embalaje_allocations(pedido_id: int, db: Session = Depends(get_db),
                                    current_user: User = Depends(AuthDependencies.get_current_user)):
    return PedidoInventoryService(db).get_embalaje_allocations(pedido_id)


@pedidos_router.get("/{pedido_id}/payments", response_model=PedidoPaymentsResponse)
def get_pedido_payments(pedido_id: int, db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    return PaymentService(db).get_payments(pedido_id)


@pedidos_router.post("/{pedido_id}/payments", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def attach_payment(pedido_id: int, data: PaymentAttach, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return PaymentService(db).attach(pedido_id, data, current_user.id)


@pedidos_router.get("/{pedido_id}/payments/summary", response_model=PaymentSummary)
def get_payment_summary(pedido_id: int, db: Session = Depends(get_db),
                        current_user: User = Depends(AuthDependencies.get_current_user)):
    return PaymentService(db).get_summary(pedido_id)
