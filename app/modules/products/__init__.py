# app/modules/products/__init__.py
"""
Módulo de Productos - Catálogo y stock

- router.py: Endpoints del catálogo
- service.py: Reglas del catálogo y ajustes de stock
- repository.py: Acceso a datos de productos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import ProductService
from .repository import ProductRepository

__all__ = [
    "router",
    "ProductService",
    "ProductRepository"
]
