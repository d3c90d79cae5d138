# app/modules/sales/__init__.py
"""
Módulo de Ventas - Ciclo de vida de la venta (PDV)

Este módulo maneja:
- Venta pendiente única (carrito)
- Items con verificación de stock
- Descuento, finalización con cambio y descuento de stock atómico
- Cancelación
- Historial, comprobante y estadísticas

Arquitectura:
- router.py: Endpoints de ventas
- service.py: Orquestador de la venta (reglas de negocio)
- stats_service.py: Consultas de historial y dashboard
- repository.py: Acceso a datos de ventas
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import SalesService
from .stats_service import SalesStatsService
from .repository import SalesRepository

__all__ = [
    "router",
    "SalesService",
    "SalesStatsService",
    "SalesRepository"
]
