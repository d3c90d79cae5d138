# app/modules/sales/router.py
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from datetime import date, timedelta

from app.config.database import get_db
from app.config.settings import settings
from app.core.auth.dependencies import get_seller_user
from app.shared.database.models import PaymentMethod, Sale, SaleStatus, User
from .service import SalesService
from .stats_service import SalesStatsService
from .schemas import (
    SaleCreateRequest, AddItemRequest, UpdateQuantityRequest, DiscountRequest,
    NotesRequest, FinalizeSaleRequest, SaleResponse, SaleData, SaleSummary,
    SaleListResponse, CancelPendingResponse, ReceiptResponse, ReceiptLine,
    SalesStatsResponse, TopProductsResponse, DashboardResponse
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _sale_response(sale: Sale, message: str) -> SaleResponse:
    return SaleResponse(success=True, message=message, sale=SaleData.from_sale(sale))


def _payment_method(request: Optional[SaleCreateRequest]) -> PaymentMethod:
    return request.payment_method if request else PaymentMethod.CASH

# ==================== VENTA PENDIENTE ====================

@router.post("/pending", response_model=SaleResponse)
async def get_or_create_pending_sale(
    request: Optional[SaleCreateRequest] = None,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    """
    Obtener la venta en curso (carrito) o crear una nueva.

    Siempre existe como máximo una venta pendiente.
    """
    service = SalesService(db, user_id=current_user.id)
    sale = service.get_or_create_pending_sale(_payment_method(request))
    return _sale_response(sale, "Venta pendiente")

@router.post("/new", response_model=SaleResponse)
async def create_sale(
    request: Optional[SaleCreateRequest] = None,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    """Descartar la venta pendiente actual y empezar una nueva"""
    service = SalesService(db, user_id=current_user.id)
    sale = service.create_sale(_payment_method(request))
    return _sale_response(sale, "Venta creada")

@router.post("/cancel-pending", response_model=CancelPendingResponse)
async def cancel_all_pending_sales(
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    """Cancelar todas las ventas pendientes"""
    service = SalesService(db, user_id=current_user.id)
    count = service.cancel_all_pending_sales()
    return CancelPendingResponse(
        success=True,
        message=f"{count} ventas pendientes canceladas",
        cancelled_count=count
    )

# ==================== HISTORIAL Y ESTADÍSTICAS ====================

@router.get("", response_model=SaleListResponse)
async def list_sales(
    status: Optional[SaleStatus] = Query(None, description="Filtrar por estado"),
    sale_date: Optional[date] = Query(None, description="Filtrar por día"),
    page: int = Query(0, ge=0),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    """Historial de ventas, más recientes primero"""
    stats = SalesStatsService(db)
    sales, has_next = stats.list_sales(status, sale_date, page, size)

    return SaleListResponse(
        success=True,
        message=f"{len(sales)} ventas",
        sales=[
            SaleSummary(
                id=sale.id,
                sale_date=sale.sale_date,
                status=sale.status,
                payment_method=sale.payment_method,
                items_count=sale.items_count,
                total_amount=sale.total_amount
            )
            for sale in sales
        ],
        page=page,
        size=size,
        has_next=has_next
    )

@router.get("/stats", response_model=SalesStatsResponse)
async def get_sales_stats(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    """Estadísticas por forma de pago y por día (por defecto últimos 30 días)"""
    end_date = end_date or date.today()
    start_date = start_date or (end_date - timedelta(days=30))

    stats = SalesStatsService(db)
    return SalesStatsResponse(
        success=True,
        message="Estadísticas de ventas",
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        by_payment_method=stats.stats_by_payment_method(start_date, end_date),
        by_day=stats.stats_by_day(start_date, end_date)
    )

@router.get("/top-products", response_model=TopProductsResponse)
async def get_top_products(
    limit: int = Query(settings.top_products_limit, ge=1, le=100),
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    """Productos más vendidos"""
    stats = SalesStatsService(db)
    return TopProductsResponse(
        success=True,
        message="Productos más vendidos",
        products=stats.top_products(limit)
    )

@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    """Resumen del día y del mes"""
    stats = SalesStatsService(db)
    return DashboardResponse(
        success=True,
        message="Resumen de ventas",
        summary=stats.dashboard_summary()
    )

# ==================== VENTA ====================

@router.get("/{sale_id}", response_model=SaleResponse)
async def get_sale(
    sale_id: int,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    service = SalesService(db, user_id=current_user.id)
    return _sale_response(service.get_sale(sale_id), "Venta encontrada")

@router.get("/{sale_id}/receipt", response_model=ReceiptResponse)
async def get_receipt(
    sale_id: int,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    """Comprobante de una venta finalizada"""
    service = SalesService(db, user_id=current_user.id)
    sale = service.get_receipt_sale(sale_id)
    method = PaymentMethod(sale.payment_method)

    return ReceiptResponse(
        success=True,
        message=f"Comprobante venta #{sale.id}",
        sale_id=sale.id,
        sale_date=sale.sale_date,
        finalized_at=sale.finalized_at,
        payment_method=method,
        payment_method_label=method.label,
        lines=[
            ReceiptLine(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=item.subtotal
            )
            for item in sale.items
        ],
        subtotal=sale.subtotal,
        discount=sale.discount,
        total_amount=sale.total_amount,
        amount_tendered=sale.amount_tendered,
        change_due=sale.change_due,
        notes=sale.notes
    )

@router.post("/{sale_id}/items", response_model=SaleResponse)
async def add_item(
    sale_id: int,
    request: AddItemRequest,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    """
    Agregar producto al carrito.

    **Reglas:**
    - Solo ventas pendientes
    - La cantidad no puede superar el stock actual
    - Un producto repetido suma cantidad a la línea existente
    """
    service = SalesService(db, user_id=current_user.id)
    sale = service.add_item(sale_id, request.product_id, request.quantity)
    return _sale_response(sale, "Producto agregado")

@router.put("/{sale_id}/items/{item_id}", response_model=SaleResponse)
async def update_item_quantity(
    sale_id: int,
    item_id: int,
    request: UpdateQuantityRequest,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    service = SalesService(db, user_id=current_user.id)
    sale = service.update_item_quantity(sale_id, item_id, request.quantity)
    return _sale_response(sale, "Cantidad actualizada")

@router.post("/{sale_id}/items/{item_id}/increment", response_model=SaleResponse)
async def increment_item(
    sale_id: int,
    item_id: int,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    service = SalesService(db, user_id=current_user.id)
    return _sale_response(service.increment_item(sale_id, item_id), "Cantidad actualizada")

@router.post("/{sale_id}/items/{item_id}/decrement", response_model=SaleResponse)
async def decrement_item(
    sale_id: int,
    item_id: int,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    service = SalesService(db, user_id=current_user.id)
    return _sale_response(service.decrement_item(sale_id, item_id), "Cantidad actualizada")

@router.delete("/{sale_id}/items/{item_id}", response_model=SaleResponse)
async def remove_item(
    sale_id: int,
    item_id: int,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    service = SalesService(db, user_id=current_user.id)
    sale = service.remove_item(sale_id, item_id)
    return _sale_response(sale, "Producto removido")

@router.put("/{sale_id}/discount", response_model=SaleResponse)
async def apply_discount(
    sale_id: int,
    request: DiscountRequest,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    service = SalesService(db, user_id=current_user.id)
    sale = service.apply_discount(sale_id, request.discount)
    return _sale_response(sale, "Descuento aplicado")

@router.put("/{sale_id}/notes", response_model=SaleResponse)
async def update_notes(
    sale_id: int,
    request: NotesRequest,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    service = SalesService(db, user_id=current_user.id)
    sale = service.update_notes(sale_id, request.notes)
    return _sale_response(sale, "Observaciones actualizadas")

@router.post("/{sale_id}/finalize", response_model=SaleResponse)
async def finalize_sale(
    sale_id: int,
    request: FinalizeSaleRequest,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    """
    Finalizar venta.

    **Incluye:**
    - Validación de items y valor recibido
    - Cálculo de cambio
    - Descuento de stock de todas las líneas en una sola transacción
    """
    service = SalesService(db, user_id=current_user.id)

    try:
        sale = service.finalize_sale(
            sale_id,
            request.amount_tendered,
            payment_method=request.payment_method,
            notes=request.notes
        )
        return _sale_response(sale, "Venta finalizada exitosamente")

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error inesperado finalizando venta {sale_id}")
        raise HTTPException(status_code=500, detail=f"Error finalizando venta: {str(e)}")

@router.post("/{sale_id}/cancel", response_model=SaleResponse)
async def cancel_sale(
    sale_id: int,
    current_user: User = Depends(get_seller_user),
    db: Session = Depends(get_db)
):
    service = SalesService(db, user_id=current_user.id)
    sale = service.cancel_sale(sale_id)
    return _sale_response(sale, "Venta cancelada")
