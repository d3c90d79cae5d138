# app/shared/database/models.py
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime,
    Numeric, ForeignKey, CheckConstraint, Index,
    func, text
)
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional

from app.core.exceptions import InvalidPrice, InvalidQuantity

Base = declarative_base()

MONEY = Decimal("0.01")


def to_money(value) -> Decimal:
    """Normalizar a Decimal con 2 decimales"""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(MONEY, rounding=ROUND_HALF_UP)


# =====================================================
# ENUMS
# =====================================================

class SaleStatus(str, Enum):
    PENDING = "PENDING"
    FINALIZED = "FINALIZED"
    CANCELLED = "CANCELLED"

    @property
    def label(self) -> str:
        return {
            "PENDING": "Pendiente",
            "FINALIZED": "Finalizada",
            "CANCELLED": "Cancelada",
        }[self.value]


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    PIX = "PIX"
    MIXED = "MIXED"

    @property
    def label(self) -> str:
        return {
            "CASH": "Efectivo",
            "CREDIT_CARD": "Tarjeta de crédito",
            "DEBIT_CARD": "Tarjeta de débito",
            "PIX": "PIX",
            "MIXED": "Mixto",
        }[self.value]


# =====================================================
# MIXIN PARA TIMESTAMPS
# =====================================================
class TimestampMixin:
    """Mixin que agrega campos created_at y updated_at"""
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp(), onupdate=func.current_timestamp())


# =====================================================
# USUARIOS
# =====================================================

class User(Base):
    """Modelo de Usuario"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    role = Column(String(50), default='seller', nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.current_timestamp())

    # Relationships
    sales = relationship("Sale", back_populates="seller")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


# =====================================================
# PRODUCTOS
# =====================================================

class Product(Base, TimestampMixin):
    """Modelo de Producto"""
    __tablename__ = "products"

    CODE_MAX_LENGTH = 50
    NAME_MAX_LENGTH = 200
    DESCRIPTION_MAX_LENGTH = 500
    CATEGORY_MAX_LENGTH = 100
    BRAND_MAX_LENGTH = 100
    SUPPLIER_MAX_LENGTH = 150
    UNIT_MAX_LENGTH = 10

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(CODE_MAX_LENGTH), nullable=False, unique=True, index=True)
    name = Column(String(NAME_MAX_LENGTH), nullable=False, index=True)
    description = Column(String(DESCRIPTION_MAX_LENGTH))
    category = Column(String(CATEGORY_MAX_LENGTH), index=True)
    brand = Column(String(BRAND_MAX_LENGTH))
    supplier = Column(String(SUPPLIER_MAX_LENGTH))
    cost_price = Column(Numeric(10, 2))
    sale_price = Column(Numeric(10, 2), nullable=False)
    current_stock = Column(Integer, nullable=False, default=0)
    minimum_stock = Column(Integer, default=0)
    maximum_stock = Column(Integer)
    unit = Column(String(UNIT_MAX_LENGTH), default='UN')
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint('current_stock >= 0', name='ck_products_stock_non_negative'),
        CheckConstraint('sale_price > 0', name='ck_products_sale_price_positive'),
    )

    # Relationships
    inventory_changes = relationship("InventoryChange", back_populates="product")

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= (self.minimum_stock or 0)

    @property
    def is_out_of_stock(self) -> bool:
        return self.current_stock == 0

    @property
    def profit_margin(self) -> Optional[Decimal]:
        """Margen sobre costo en porcentaje"""
        if not self.cost_price or self.cost_price <= 0:
            return None
        profit = Decimal(self.sale_price) - Decimal(self.cost_price)
        return (profit / Decimal(self.cost_price) * 100).quantize(MONEY, rounding=ROUND_HALF_UP)

    def adjust_stock(self, delta: int) -> bool:
        """Aplicar delta al stock; False si quedaría negativo (sin modificar)"""
        new_stock = (self.current_stock or 0) + delta
        if new_stock < 0:
            return False
        self.current_stock = new_stock
        return True


class InventoryChange(Base):
    """Modelo de Cambios de Inventario"""
    __tablename__ = "inventory_changes"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    change_type = Column(String(50), nullable=False)
    quantity_before = Column(Integer)
    quantity_after = Column(Integer)
    reference_id = Column(Integer)
    user_id = Column(Integer)
    notes = Column(String(255))
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    # Relationships
    product = relationship("Product", back_populates="inventory_changes")


# =====================================================
# VENTAS
# =====================================================

class Sale(Base):
    """
    Venta (agregado raíz).

    Contiene toda la aritmética y las transiciones de estado; no hace I/O.
    Los items se cargan y guardan junto con la venta.
    """
    __tablename__ = "sales"

    NOTES_MAX_LENGTH = 500

    id = Column(Integer, primary_key=True, index=True)
    sale_date = Column(DateTime, nullable=False, default=datetime.now, index=True)
    status = Column(String(20), nullable=False, default=SaleStatus.PENDING.value)
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.CASH.value)
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    amount_tendered = Column(Numeric(10, 2))
    change_due = Column(Numeric(10, 2), nullable=False, default=0)
    notes = Column(String(NOTES_MAX_LENGTH))
    seller_id = Column(Integer, ForeignKey("users.id"))
    finalized_at = Column(DateTime)
    cancelled_at = Column(DateTime)

    __table_args__ = (
        # Como máximo una venta pendiente en todo el sistema
        Index(
            'uq_sales_single_pending', 'status', unique=True,
            sqlite_where=text("status = 'PENDING'"),
            postgresql_where=text("status = 'PENDING'")
        ),
        CheckConstraint('total_amount >= 0', name='ck_sales_total_non_negative'),
        CheckConstraint('discount >= 0', name='ck_sales_discount_non_negative'),
        CheckConstraint('change_due >= 0', name='ck_sales_change_non_negative'),
        {"sqlite_autoincrement": True},
    )

    # Relationships
    seller = relationship("User", back_populates="sales")
    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
        lazy="selectin"
    )

    def __init__(self, payment_method: PaymentMethod = PaymentMethod.CASH, **kwargs):
        kwargs.setdefault("sale_date", datetime.now())
        kwargs.setdefault("status", SaleStatus.PENDING.value)
        kwargs.setdefault("total_amount", Decimal("0.00"))
        kwargs.setdefault("discount", Decimal("0.00"))
        kwargs.setdefault("change_due", Decimal("0.00"))
        super().__init__(payment_method=PaymentMethod(payment_method).value, **kwargs)

    def __repr__(self):
        return f"<Sale(id={self.id}, status={self.status}, total={self.total_amount})>"

    # ---------- estado ----------

    @property
    def is_pending(self) -> bool:
        return self.status == SaleStatus.PENDING.value

    @property
    def is_finalized(self) -> bool:
        return self.status == SaleStatus.FINALIZED.value

    @property
    def is_cancelled(self) -> bool:
        return self.status == SaleStatus.CANCELLED.value

    # ---------- items ----------

    def add_item(self, item: "SaleItem") -> None:
        # El backref asigna item.sale
        self.items.append(item)
        self.recalculate_total()

    def remove_item(self, item: "SaleItem") -> None:
        self.items.remove(item)
        self.recalculate_total()

    def find_item(self, item_id: int) -> Optional["SaleItem"]:
        return next((item for item in self.items if item.id == item_id), None)

    def find_item_by_product(self, product_id: int) -> Optional["SaleItem"]:
        return next((item for item in self.items if item.product_id == product_id), None)

    @property
    def items_count(self) -> int:
        return len(self.items)

    @property
    def total_units(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def subtotal(self) -> Decimal:
        return to_money(sum((Decimal(item.subtotal) for item in self.items), Decimal("0")))

    # ---------- aritmética ----------

    def recalculate_total(self) -> Decimal:
        total = self.subtotal
        discount = to_money(self.discount)
        if discount > 0:
            total -= discount
        self.total_amount = max(total, Decimal("0.00"))
        return self.total_amount

    def calculate_change(self) -> Decimal:
        total = to_money(self.total_amount)
        if self.amount_tendered is not None and to_money(self.amount_tendered) >= total:
            self.change_due = to_money(self.amount_tendered) - total
        else:
            self.change_due = Decimal("0.00")
        return self.change_due

    # ---------- transiciones ----------

    def finalize(self) -> None:
        self.status = SaleStatus.FINALIZED.value
        self.finalized_at = datetime.now()
        self.calculate_change()

    def cancel(self) -> None:
        self.status = SaleStatus.CANCELLED.value
        self.cancelled_at = datetime.now()

    def can_finalize(self) -> bool:
        return (
            len(self.items) > 0
            and self.is_pending
            and to_money(self.total_amount) > 0
            and self.amount_tendered is not None
            and to_money(self.amount_tendered) >= to_money(self.total_amount)
        )


class SaleItem(Base):
    """Modelo de Item de Venta (precio copiado del catálogo al agregar)"""
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    product_code = Column(String(Product.CODE_MAX_LENGTH), nullable=False)
    product_name = Column(String(Product.NAME_MAX_LENGTH), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)

    __table_args__ = (
        CheckConstraint('quantity >= 1', name='ck_sale_items_quantity_positive'),
        CheckConstraint('unit_price >= 0', name='ck_sale_items_unit_price_non_negative'),
        {"sqlite_autoincrement": True},
    )

    # Relationships
    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")

    @classmethod
    def create(cls, product: Product, quantity: int, unit_price=None) -> "SaleItem":
        if quantity is None or quantity < 1:
            raise InvalidQuantity(quantity)
        price = product.sale_price if unit_price is None else unit_price
        if to_money(price) < 0:
            raise InvalidPrice(price)
        item = cls(
            product_id=product.id,
            product_code=product.code,
            product_name=product.name,
            quantity=quantity,
            unit_price=to_money(price),
        )
        item.product = product
        item.calculate_subtotal()
        return item

    def __repr__(self):
        return f"<SaleItem(id={self.id}, product={self.product_code}, qty={self.quantity})>"

    def calculate_subtotal(self) -> Decimal:
        if self.quantity is not None and self.unit_price is not None:
            self.subtotal = to_money(Decimal(self.unit_price) * self.quantity)
        else:
            self.subtotal = Decimal("0.00")
        return self.subtotal

    def set_quantity(self, quantity: int) -> None:
        if quantity is None or quantity < 1:
            raise InvalidQuantity(quantity)
        self.quantity = quantity
        self.calculate_subtotal()

    def set_unit_price(self, unit_price) -> None:
        price = to_money(unit_price)
        if price < 0:
            raise InvalidPrice(unit_price)
        self.unit_price = price
        self.calculate_subtotal()

    def increment(self) -> None:
        self.quantity += 1
        self.calculate_subtotal()

    def can_decrement(self) -> bool:
        return self.quantity > 1

    def decrement(self) -> None:
        if self.can_decrement():
            self.quantity -= 1
            self.calculate_subtotal()

    @property
    def description(self) -> str:
        return f"{self.product_name} - {self.quantity}x $ {to_money(self.unit_price)}"
