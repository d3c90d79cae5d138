# app/modules/products/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from decimal import Decimal
from datetime import datetime
from app.shared.schemas.common import BaseResponse, PaginatedResponse

# ===== REQUESTS =====

class ProductCreate(BaseModel):
    """Schema para crear un producto"""
    code: str = Field(..., min_length=1, max_length=50, description="Código único del producto")
    name: str = Field(..., min_length=1, max_length=200, description="Nombre")
    description: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    supplier: Optional[str] = Field(None, max_length=150)
    cost_price: Optional[Decimal] = Field(None, ge=0, description="Precio de costo")
    sale_price: Decimal = Field(..., gt=0, description="Precio de venta")
    current_stock: int = Field(0, ge=0, description="Stock inicial")
    minimum_stock: int = Field(0, ge=0)
    maximum_stock: Optional[int] = Field(None, ge=0)
    unit: str = Field("UN", max_length=10)

    @validator('code', 'name')
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('El campo no puede estar vacío')
        return v.strip()

class ProductUpdate(BaseModel):
    """Schema para actualizar un producto; el stock se cambia solo vía ajuste"""
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    supplier: Optional[str] = Field(None, max_length=150)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    sale_price: Optional[Decimal] = Field(None, gt=0)
    minimum_stock: Optional[int] = Field(None, ge=0)
    maximum_stock: Optional[int] = Field(None, ge=0)
    unit: Optional[str] = Field(None, max_length=10)

    @validator('code', 'name')
    def not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError('El campo no puede estar vacío')
        return v.strip() if v else v

class StockAdjustRequest(BaseModel):
    delta: int = Field(..., description="Unidades a sumar (positivo) o restar (negativo)")
    notes: Optional[str] = Field(None, max_length=255)

# ===== RESPONSES =====

class ProductData(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    supplier: Optional[str] = None
    cost_price: Optional[Decimal] = None
    sale_price: Decimal
    current_stock: int
    minimum_stock: Optional[int] = None
    maximum_stock: Optional[int] = None
    unit: Optional[str] = None
    is_active: bool
    is_low_stock: bool
    profit_margin: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ProductResponse(BaseResponse):
    product: ProductData

class ProductListResponse(PaginatedResponse):
    items: List[ProductData]

class ProductSimpleListResponse(BaseResponse):
    products: List[ProductData]
    count: int

class ValuesResponse(BaseResponse):
    values: List[str]
