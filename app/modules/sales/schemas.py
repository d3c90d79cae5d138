# app/modules/sales/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional, Dict, Any
from decimal import Decimal
from datetime import datetime
from app.shared.schemas.common import BaseResponse
from app.shared.database.models import PaymentMethod, Sale, SaleItem, SaleStatus

# ==================== REQUESTS ====================

class SaleCreateRequest(BaseModel):
    payment_method: PaymentMethod = Field(PaymentMethod.CASH, description="Forma de pago inicial")

class AddItemRequest(BaseModel):
    product_id: int = Field(..., description="ID del producto")
    # cantidad < 1 -> INVALID_QUANTITY desde el servicio
    quantity: int = Field(1, description="Cantidad a agregar")

class UpdateQuantityRequest(BaseModel):
    quantity: int = Field(..., description="Nueva cantidad")

class DiscountRequest(BaseModel):
    discount: Decimal = Field(..., description="Descuento en valor absoluto")

class NotesRequest(BaseModel):
    notes: Optional[str] = Field(None, description="Observaciones")

class FinalizeSaleRequest(BaseModel):
    amount_tendered: Decimal = Field(..., description="Valor recibido del cliente")
    payment_method: Optional[PaymentMethod] = Field(None, description="Forma de pago final")
    notes: Optional[str] = Field(None, description="Observaciones")

    @validator('notes')
    def strip_notes(cls, v):
        return v.strip() if v is not None else v

# ==================== SNAPSHOTS ====================

class SaleItemData(BaseModel):
    id: Optional[int]
    product_id: int
    product_code: str
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    description: str

    @classmethod
    def from_item(cls, item: SaleItem) -> "SaleItemData":
        return cls(
            id=item.id,
            product_id=item.product_id,
            product_code=item.product_code,
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            subtotal=item.subtotal,
            description=item.description
        )

class SaleData(BaseModel):
    id: int
    sale_date: datetime
    status: SaleStatus
    payment_method: PaymentMethod
    items: List[SaleItemData]
    items_count: int
    total_units: int
    subtotal: Decimal
    discount: Decimal
    total_amount: Decimal
    amount_tendered: Optional[Decimal] = None
    change_due: Decimal
    notes: Optional[str] = None
    can_finalize: bool
    finalized_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @classmethod
    def from_sale(cls, sale: Sale) -> "SaleData":
        return cls(
            id=sale.id,
            sale_date=sale.sale_date,
            status=sale.status,
            payment_method=sale.payment_method,
            items=[SaleItemData.from_item(item) for item in sale.items],
            items_count=sale.items_count,
            total_units=sale.total_units,
            subtotal=sale.subtotal,
            discount=sale.discount,
            total_amount=sale.total_amount,
            amount_tendered=sale.amount_tendered,
            change_due=sale.change_due,
            notes=sale.notes,
            can_finalize=sale.can_finalize(),
            finalized_at=sale.finalized_at,
            cancelled_at=sale.cancelled_at
        )

class SaleSummary(BaseModel):
    id: int
    sale_date: datetime
    status: SaleStatus
    payment_method: PaymentMethod
    items_count: int
    total_amount: Decimal

# ==================== RESPONSES ====================

class SaleResponse(BaseResponse):
    sale: SaleData

class SaleListResponse(BaseResponse):
    sales: List[SaleSummary]
    page: int
    size: int
    has_next: bool

class CancelPendingResponse(BaseResponse):
    cancelled_count: int

class ReceiptLine(BaseModel):
    description: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

class ReceiptResponse(BaseResponse):
    sale_id: int
    sale_date: datetime
    finalized_at: Optional[datetime]
    payment_method: PaymentMethod
    payment_method_label: str
    lines: List[ReceiptLine]
    subtotal: Decimal
    discount: Decimal
    total_amount: Decimal
    amount_tendered: Decimal
    change_due: Decimal
    notes: Optional[str] = None

class SalesStatsResponse(BaseResponse):
    start_date: str
    end_date: str
    by_payment_method: List[Dict[str, Any]]
    by_day: List[Dict[str, Any]]

class TopProductsResponse(BaseResponse):
    products: List[Dict[str, Any]]

class DashboardResponse(BaseResponse):
    summary: Dict[str, Any]
