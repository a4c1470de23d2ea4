"""
Router para el módulo de Producción

- Catálogos: /produccion/tipo, /size, /capacity, /esmalte-color
- Productos: /produccion/products
- Inventario por etapa: /produccion/inventory
"""

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.produccion.models import Tipo, Size, Capacity, EsmalteColor, Stage, ProductCategory
from app.modules.produccion.service import MasterDataService, ProductService, ProduccionInventoryService
from app.modules.produccion.schemas import (
    TipoCreate, TipoOut, SizeCreate, SizeOut, CapacityCreate, CapacityOut,
    EsmalteColorCreate, EsmalteColorOut, ProductCreate, ProductUpdate, ProductOut,
    InventoryOut, MovementOut, StageInput, EsmaltadoInput, StageAdjustment, MermaInput,
    OperationResult, AdjustmentResult
)

router = APIRouter(
    prefix="/produccion",
    tags=["Produccion"],
    responses={404: {"description": "Not found"}}
)


# ===== CATÁLOGOS =====

@router.get("/tipo", response_model=List[TipoOut])
def get_tipos(db: Session = Depends(get_db), current_user: User = Depends(AuthDependencies.get_current_user)):
    return MasterDataService(db).list(Tipo)


@router.post("/tipo", response_model=TipoOut, status_code=status.HTTP_201_CREATED)
def create_tipo(data: TipoCreate, db: Session = Depends(get_db),
                current_user: User = Depends(AuthDependencies.get_current_user)):
    return MasterDataService(db).create(Tipo, data.model_dump())


@router.delete("/tipo/{tipo_id}")
def delete_tipo(tipo_id: int, db: Session = Depends(get_db),
                current_user: User = Depends(AuthDependencies.get_current_user)):
    return MasterDataService(db).delete(Tipo, tipo_id)


@router.get("/size", response_model=List[SizeOut])
def get_sizes(db: Session = Depends(get_db), current_user: User = Depends(AuthDependencies.get_current_user)):
    return MasterDataService(db).list(Size)


@router.post("/size", response_model=SizeOut, status_code=status.HTTP_201_CREATED)
def create_size(data: SizeCreate, db: Session = Depends(get_db),
                current_user: User = Depends(AuthDependencies.get_current_user)):
    return MasterDataService(db).create(Size, data.model_dump())


@router.delete("/size/{size_id}")
def delete_size(size_id: int, db: Session = Depends(get_db),
                current_user: User = Depends(AuthDependencies.get_current_user)):
    return MasterDataService(db).delete(Size, size_id)


@router.get("/capacity", response_model=List[CapacityOut])
def get_capacities(db: Session = Depends(get_db), current_user: User = Depends(AuthDependencies.get_current_user)):
    return MasterDataService(db).list(Capacity)


@router.post("/capacity", response_model=CapacityOut, status_code=status.HTTP_201_CREATED)
def create_capacity(data: CapacityCreate, db: Session = Depends(get_db),
                    current_user: User = Depends(AuthDependencies.get_current_user)):
    return MasterDataService(db).create(Capacity, data.model_dump())


@router.delete("/capacity/{capacity_id}")
def delete_capacity(capacity_id: int, db: Session = Depends(get_db),
                    current_user: User = Depends(AuthDependencies.get_current_user)):
    return MasterDataService(db).delete(Capacity, capacity_id)


@router.get("/esmalte-color", response_model=List[EsmalteColorOut])
def get_esmalte_colors(db: Session = Depends(get_db), current_user: User = Depends(AuthDependencies.get_current_user)):
    return MasterDataService(db).list(EsmalteColor)


@router.post("/esmalte-color", response_model=EsmalteColorOut, status_code=status.HTTP_201_CREATED)
def create_esmalte_color(data: EsmalteColorCreate, db: Session = Depends(get_db),
                         current_user: User = Depends(AuthDependencies.get_current_user)):
    return MasterDataService(db).create(EsmalteColor, data.model_dump())


@router.delete("/esmalte-color/{color_id}")
def delete_esmalte_color(color_id: int, db: Session = Depends(get_db),
                         current_user: User = Depends(AuthDependencies.get_current_user)):
    return MasterDataService(db).delete(EsmalteColor, color_id)


# ===== PRODUCTOS =====

@router.get("/products", response_model=List[ProductOut])
def get_products(
    product_category: Optional[ProductCategory] = Query(None, description="CERAMICA o EMBALAJE"),
    stage: Optional[Stage] = Query(None),
    tipo_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Búsqueda por nombre o notas"),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ProductService(db).get_products(
        product_category.value if product_category else None,
        stage.value if stage else None,
        tipo_id,
        search
    )


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: int = Path(..., description="ID del producto"), db: Session = Depends(get_db),
                current_user: User = Depends(AuthDependencies.get_current_user)):
    return ProductService(db).get_product(product_id)


@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(product_data: ProductCreate, db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    """
    Crear producto

    - **name**, **stage** y **tipo_id** son requeridos
    - **product_category**: CERAMICA (default) o EMBALAJE
    """
    return ProductService(db).create_product(product_data, current_user.id)


@router.put("/products/{product_id}", response_model=ProductOut)
def update_product(product_data: ProductUpdate, product_id: int = Path(...), db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return ProductService(db).update_product(product_id, product_data)


@router.delete("/products/{product_id}")
def delete_product(product_id: int = Path(...), db: Session = Depends(get_db),
                   current_user: User = Depends(AuthDependencies.get_current_user)):
    return ProductService(db).delete_product(product_id)


# ===== INVENTARIO =====

@router.get("/inventory", response_model=List[InventoryOut])
def get_inventory(
    stage: Optional[Stage] = Query(None),
    product_id: Optional[int] = Query(None),
    esmalte_color_id: Optional[int] = Query(None),
    include_empty: bool = Query(False, description="Incluir filas con existencia cero"),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """Existencias por producto, etapa y color (quantity, apartados, vendidos, disponibles)."""
    return ProduccionInventoryService(db).get_inventory(
        stage.value if stage else None, product_id, esmalte_color_id, include_empty
    )


@router.get("/inventory/movements", response_model=List[MovementOut])
def get_movements(
    product_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """Últimos movimientos de inventario (default 100)."""
    return ProduccionInventoryService(db).get_movements(product_id, limit)


@router.post("/inventory/crudo", response_model=OperationResult)
def process_crudo(data: StageInput, db: Session = Depends(get_db),
                  current_user: User = Depends(AuthDependencies.get_current_user)):
    """Entrada de piezas en CRUDO."""
    rows = ProduccionInventoryService(db).process_crudo_input(data, current_user.id)
    return {"message": "Inventario CRUDO agregado", "inventory": rows}


@router.post("/inventory/sancochado", response_model=OperationResult)
def process_sancochado(data: StageInput, db: Session = Depends(get_db),
                       current_user: User = Depends(AuthDependencies.get_current_user)):
    """Pasa piezas de CRUDO a SANCOCHADO."""
    rows = ProduccionInventoryService(db).process_sancochado(data, current_user.id)
    return {"message": "SANCOCHADO procesado", "inventory": rows}


@router.post("/inventory/esmaltado", response_model=OperationResult)
def process_esmaltado(data: EsmaltadoInput, db: Session = Depends(get_db),
                      current_user: User = Depends(AuthDependencies.get_current_user)):
    """Pasa piezas de SANCOCHADO a ESMALTADO con un color."""
    rows = ProduccionInventoryService(db).process_esmaltado(data, current_user.id)
    return {"message": "ESMALTADO procesado", "inventory": rows}


@router.post("/inventory/adjust", response_model=AdjustmentResult)
def process_adjustment(data: StageAdjustment, db: Session = Depends(get_db),
                       current_user: User = Depends(AuthDependencies.get_current_user)):
    """Fija una cantidad exacta; nunca por debajo de los apartados."""
    return ProduccionInventoryService(db).process_adjustment(data, current_user.id)


@router.post("/inventory/merma", response_model=OperationResult)
def process_merma(data: MermaInput, db: Session = Depends(get_db),
                  current_user: User = Depends(AuthDependencies.get_current_user)):
    """Registra piezas dañadas o perdidas."""
    rows = ProduccionInventoryService(db).process_merma(data, current_user.id)
    return {"message": "MERMA registrada", "inventory": rows}
