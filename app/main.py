from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import logging

# Import database components
from app.database.database import sync_engine, Base

# Import middleware
from app.common.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware

# Import routers
from app.modules.auth.router import auth_router
from app.modules.tasks.router import router as tasks_router, subtasks_router
from app.modules.personal_tasks.router import router as personal_tasks_router
from app.modules.projects.router import router as projects_router
from app.modules.contacts.router import router as contacts_router
from app.modules.documents.router import router as documents_router
from app.modules.areas.router import router as areas_router
from app.modules.notifications.router import router as notifications_router
from app.modules.ledger.router import ledger_router, ledger_mxn_router
from app.modules.cotizaciones.router import router as cotizaciones_router
from app.modules.produccion.router import router as produccion_router
from app.modules.embalaje.router import router as embalaje_router
from app.modules.inventory.router import inventory_router
from app.modules.ventas.router import quotations_router, pedidos_router as ventas_pedidos_router
from app.modules.ecommerce.router import kits_router, pedidos_router as ecommerce_pedidos_router

# Import models for table creation
import app.modules.auth.models
import app.modules.tasks.models
import app.modules.personal_tasks.models
import app.modules.projects.models
import app.modules.contacts.models
import app.modules.documents.models
import app.modules.areas.models
import app.modules.notifications.models
import app.modules.ledger.models
import app.modules.cotizaciones.models
import app.modules.produccion.models
import app.modules.embalaje.models
import app.modules.ventas.models
import app.modules.ecommerce.models

from app.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Taller API",
    description="API de gestión del taller: tareas, proyectos, contactos, finanzas, producción y ventas",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

# Add middleware (order matters!)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Colaboración
app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(tasks_router)
app.include_router(subtasks_router)
app.include_router(personal_tasks_router)
app.include_router(projects_router)
app.include_router(contacts_router)
app.include_router(documents_router)
app.include_router(areas_router)
app.include_router(notifications_router)

# Finanzas
app.include_router(ledger_router)
app.include_router(ledger_mxn_router)
app.include_router(cotizaciones_router)

# Operación
app.include_router(produccion_router)
app.include_router(embalaje_router)
app.include_router(inventory_router)
app.include_router(quotations_router)
app.include_router(ventas_pedidos_router)
app.include_router(kits_router)
app.include_router(ecommerce_pedidos_router)

# Create database tables (only for development - use migrations in production)
if settings.ENVIRONMENT == "development":
    Base.metadata.create_all(bind=sync_engine)


@app.get("/")
async def read_root():
    return {
        "message": "Taller API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}


@app.on_event("startup")
async def startup_event():
    logger.info("Taller API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Taller API shutting down...")
