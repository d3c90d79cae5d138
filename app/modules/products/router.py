# app/modules/products/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config.database import get_db
from app.config.settings import settings
from app.core.auth.dependencies import get_admin_user, get_seller_user
from app.shared.database.models import Product, User
from .service import ProductService
from .schemas import (
    ProductCreate, ProductUpdate, StockAdjustRequest, ProductData,
    ProductResponse, ProductListResponse, ProductSimpleListResponse, ValuesResponse
)

router = APIRouter()


def _product_response(product: Product, message: str) -> ProductResponse:
    return ProductResponse(success=True, message=message, product=ProductData.model_validate(product))


def _simple_list(products: List[Product], message: str) -> ProductSimpleListResponse:
    return ProductSimpleListResponse(
        success=True,
        message=message,
        products=[ProductData.model_validate(p) for p in products],
        count=len(products)
    )

# ===== CONSULTAS =====

@router.get("", response_model=ProductListResponse)
async def search_products(
    q: Optional[str] = Query(None, description="Código, nombre, marca o categoría"),
    category: Optional[str] = Query(None),
    active_only: bool = Query(True),
    page: int = Query(1, ge=1),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    """Listar o buscar productos del catálogo"""
    service = ProductService(db)
    products, total = service.search(q, category, active_only, page, size)

    return ProductListResponse(
        success=True,
        message=f"{total} productos encontrados",
        items=[ProductData.model_validate(p) for p in products],
        total=total,
        page=page,
        size=size,
        pages=(total + size - 1) // size
    )

@router.get("/low-stock", response_model=ProductSimpleListResponse)
async def get_low_stock(
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    """Productos con stock igual o menor al mínimo"""
    return _simple_list(ProductService(db).low_stock(), "Productos con stock bajo")

@router.get("/out-of-stock", response_model=ProductSimpleListResponse)
async def get_out_of_stock(
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    return _simple_list(ProductService(db).out_of_stock(), "Productos sin stock")

@router.get("/categories", response_model=ValuesResponse)
async def get_categories(
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    return ValuesResponse(success=True, message="Categorías", values=ProductService(db).categories())

@router.get("/brands", response_model=ValuesResponse)
async def get_brands(
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    return ValuesResponse(success=True, message="Marcas", values=ProductService(db).brands())

@router.get("/code/{code}", response_model=ProductResponse)
async def get_product_by_code(
    code: str,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    """Buscar producto por código (lector de código de barras)"""
    return _product_response(ProductService(db).get_by_code(code), "Producto encontrado")

@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    return _product_response(ProductService(db).get_product(product_id), "Producto encontrado")

# ===== ADMINISTRACIÓN =====

@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    request: ProductCreate,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """
    Crear producto

    **Permisos requeridos:** Solo administradores

    **Validaciones:**
    - El código debe ser único
    - El precio de venta debe ser > 0
    - El stock inicial debe ser >= 0
    """
    service = ProductService(db, user_id=current_user.id)
    return _product_response(service.create_product(request), "Producto creado")

@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    request: ProductUpdate,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    service = ProductService(db, user_id=current_user.id)
    return _product_response(service.update_product(product_id, request), "Producto actualizado")

@router.post("/{product_id}/stock", response_model=ProductResponse)
async def adjust_stock(
    product_id: int,
    request: StockAdjustRequest,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """Ajuste manual de stock; el resultado nunca puede quedar negativo"""
    service = ProductService(db, user_id=current_user.id)
    product = service.adjust_stock(product_id, request.delta, request.notes)
    return _product_response(product, "Stock ajustado")

@router.post("/{product_id}/activate", response_model=ProductResponse)
async def activate_product(
    product_id: int,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    service = ProductService(db, user_id=current_user.id)
    return _product_response(service.set_active(product_id, True), "Producto activado")

@router.delete("/{product_id}", response_model=ProductResponse)
async def deactivate_product(
    product_id: int,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """Desactivar producto (eliminación lógica)"""
    service = ProductService(db, user_id=current_user.id)
    return _product_response(service.set_active(product_id, False), "Producto desactivado")
