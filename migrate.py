#!/usr/bin/env python3
"""
Migraciones de base de datos con Alembic.

La configuración se arma en código (sin alembic.ini): los scripts viven en
migrations/ y la URL sale de app.core.config.
"""
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

root_dir = Path(__file__).resolve().parent
sys.path.insert(0, str(root_dir))

from app.core.config import settings  # noqa: E402

USAGE = """Uso:
  python migrate.py create 'mensaje'   # Crear migración (autogenerate)
  python migrate.py upgrade [rev]      # Ejecutar migraciones (head por defecto)
  python migrate.py downgrade [rev]    # Rollback (-1 por defecto)
  python migrate.py stamp [rev]        # Marcar una base creada con create_all
  python migrate.py history            # Ver historial
  python migrate.py current            # Ver actual"""


def get_alembic_config() -> Config:
    alembic_cfg = Config()
    alembic_cfg.set_main_option("script_location", str(root_dir / "migrations"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    return alembic_cfg


def main(argv):
    if not argv:
        print(USAGE)
        sys.exit(1)

    action, args = argv[0], argv[1:]
    alembic_cfg = get_alembic_config()

    if action == "create":
        if not args:
            print("Error: Se requiere un mensaje para la migración")
            sys.exit(1)
        command.revision(alembic_cfg, autogenerate=True, message=args[0])
        print(f"Migración creada: {args[0]}")
    elif action == "upgrade":
        command.upgrade(alembic_cfg, args[0] if args else "head")
        print("Migraciones ejecutadas exitosamente")
    elif action == "downgrade":
        command.downgrade(alembic_cfg, args[0] if args else "-1")
        print("Rollback ejecutado exitosamente")
    elif action == "stamp":
        command.stamp(alembic_cfg, args[0] if args else "head")
    elif action == "history":
        command.history(alembic_cfg)
    elif action == "current":
        command.current(alembic_cfg)
    else:
        print(f"Acción desconocida: {action}")
        print(USAGE)
        sys.exit(1)


if __name__ == "__main__":
    main(sys.argv[1:])
