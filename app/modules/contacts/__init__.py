"""
Módulo de Contactos

Fichas de clientes, proveedores, socios y prospectos clasificadas por
área/subárea, con adjuntos almacenados externamente.

Componentes:
- models.py: modelos SQLAlchemy (Contact, ContactAttachment)
- schemas.py: esquemas Pydantic de entrada y salida
- service.py: lógica de negocio y operaciones CRUD
- router.py: endpoints REST bajo /contacts
- tests.py: pruebas de integración

El paquete no reexporta submódulos: los modelos se importan siempre
desde app.modules.contacts.models para registrarse una sola vez en
Base.metadata.
"""

__version__ = "1.0.0"
