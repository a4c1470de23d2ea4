"""
Seed script: carga catálogos base del taller para desarrollo.

Qué crea:
- Usuario administrador (activo) con credenciales.
- Áreas y subáreas usadas por tareas, contactos, documentos y libros.
- Catálogos de producción: tipos, tamaños, capacidades y colores de esmalte.
- Productos de cerámica y de embalaje de ejemplo.

Dentro del contenedor de la API:
    docker compose exec api python scripts/seed_taller_data.py \
        --username admin --email admin@taller.mx --password Taller!2025

Solo para entornos de desarrollo. Es idempotente: lo existente se reutiliza.
"""

# Raíz del proyecto en sys.path para que `app.*` importe aunque cambie el CWD
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
from decimal import Decimal

from app.database.database import SessionLocal
import app.main  # noqa: F401  registra todos los modelos
from app.modules.auth.models import User
from app.modules.auth.utils import hash_password
from app.modules.areas.models import Area, Subarea
from app.modules.produccion.models import Tipo, Size, Capacity, EsmalteColor, Product, Stage, ProductCategory


AREAS = {
    "ADMINISTRACION": ["CONTABILIDAD", "RECURSOS HUMANOS"],
    "PRODUCCION": ["TALLER", "HORNOS", "ESMALTADO"],
    "VENTAS": ["VENTAS MAYOREO", "VENTAS MENUDEO", "E-COMMERCE"],
    "COMPRAS": ["PROVEEDORES"],
}

TIPOS = ["TAZA", "PLATO", "BOWL", "JARRA", "CAJA"]
SIZES = [Decimal("10"), Decimal("15"), Decimal("20"), Decimal("25")]
CAPACITIES = [Decimal("250"), Decimal("350"), Decimal("500"), Decimal("1000")]
COLORS = [
    ("BLANCO", "#FFFFFF"),
    ("AZUL COBALTO", "#0047AB"),
    ("VERDE OLIVO", "#708238"),
    ("TERRACOTA", "#E2725B"),
]

# (nombre, tipo, tamaño, capacidad, categoría)
PRODUCTS = [
    ("Taza Clásica", "TAZA", None, Decimal("350"), ProductCategory.CERAMICA),
    ("Plato Trinche", "PLATO", Decimal("25"), None, ProductCategory.CERAMICA),
    ("Bowl Cereal", "BOWL", Decimal("15"), Decimal("500"), ProductCategory.CERAMICA),
    ("Jarra Agua", "JARRA", None, Decimal("1000"), ProductCategory.CERAMICA),
    ("Caja Kit Desayuno", "CAJA", Decimal("30"), None, ProductCategory.EMBALAJE),
]


def get_or_create(db, model, defaults=None, **filters):
    instance = db.query(model).filter_by(**filters).first()
    if instance:
        return instance, False
    instance = model(**filters, **(defaults or {}))
    db.add(instance)
    db.flush()
    return instance, True


def create_admin_user(db, username: str, email: str, password: str):
    user = db.query(User).filter(User.username == username).first()
    if user:
        return user
    user = User(username=username, email=email, password=hash_password(password),
                first_name="Admin", last_name="Taller", is_active=True)
    db.add(user)
    db.flush()
    return user


def seed_areas(db) -> int:
    created = 0
    for area_name, subareas in AREAS.items():
        area, is_new = get_or_create(db, Area, name=area_name)
        created += int(is_new)
        for subarea_name in subareas:
            _, is_new = get_or_create(db, Subarea, area_id=area.id, name=subarea_name)
            created += int(is_new)
    return created


def seed_catalogs(db):
    tipos = {name: get_or_create(db, Tipo, name=name)[0] for name in TIPOS}
    sizes = {value: get_or_create(db, Size, size_cm=value)[0] for value in SIZES + [Decimal("30")]}
    capacities = {value: get_or_create(db, Capacity, capacity_ml=value)[0] for value in CAPACITIES}
    for color, hex_code in COLORS:
        get_or_create(db, EsmalteColor, defaults={"hex_code": hex_code}, color=color)
    return tipos, sizes, capacities


def seed_products(db, user_id: int, tipos, sizes, capacities) -> int:
    created = 0
    for name, tipo, size, capacity, category in PRODUCTS:
        stage = Stage.ESMALTADO if category == ProductCategory.EMBALAJE else Stage.CRUDO
        _, is_new = get_or_create(
            db, Product,
            defaults={
                "stage": stage.value,
                "product_category": category.value,
                "size_id": sizes[size].id if size else None,
                "capacity_id": capacities[capacity].id if capacity else None,
                "created_by": user_id,
            },
            name=name,
            tipo_id=tipos[tipo].id,
        )
        created += int(is_new)
    return created


def main():
    parser = argparse.ArgumentParser(description="Carga catálogos base del taller")
    parser.add_argument("--username", default="admin")
    parser.add_argument("--email", default="admin@taller.mx")
    parser.add_argument("--password", default="Taller!2025")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        user = create_admin_user(db, args.username, args.email, args.password)
        areas_created = seed_areas(db)
        tipos, sizes, capacities = seed_catalogs(db)
        products_created = seed_products(db, user.id, tipos, sizes, capacities)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    print(f"Usuario: {args.username} / {args.password}")
    print(f"Áreas y subáreas nuevas: {areas_created}")
    print(f"Productos nuevos: {products_created}")


if __name__ == "__main__":
    main()
