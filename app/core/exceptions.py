# app/core/exceptions.py
"""
Errores de negocio del PDV.

Todos extienden HTTPException para que los routers y servicios los dejen
propagar sin traducción (mismo patrón que AuthenticationError). El handler
registrado en `setup_middleware` los serializa como ErrorResponse con su
`error_code`.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class PDVError(HTTPException):
    """Error de negocio con código estable"""

    error_code: str = "PDV_ERROR"
    status_code_default: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=self.status_code_default, detail=detail)
        self.details = details


# ==================== IDENTIDAD ====================

class SaleNotFound(PDVError):
    error_code = "SALE_NOT_FOUND"
    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, sale_id: int):
        super().__init__(f"Venta no encontrada con ID: {sale_id}", {"sale_id": sale_id})


class ItemNotFound(PDVError):
    error_code = "ITEM_NOT_FOUND"
    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, item_id: int, sale_id: Optional[int] = None):
        super().__init__(
            f"Item {item_id} no encontrado en la venta {sale_id}",
            {"item_id": item_id, "sale_id": sale_id}
        )


class ProductNotFound(PDVError):
    error_code = "PRODUCT_NOT_FOUND"
    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, product_ref: Any):
        super().__init__(f"Producto no encontrado: {product_ref}", {"product": product_ref})


# ==================== ESTADO ====================

class InvalidState(PDVError):
    error_code = "INVALID_STATE"
    status_code_default = status.HTTP_409_CONFLICT


class PendingSaleConflict(PDVError):
    error_code = "PENDING_SALE_CONFLICT"
    status_code_default = status.HTTP_409_CONFLICT

    def __init__(self):
        super().__init__("Ya existe otra venta pendiente creada en paralelo")


class DuplicateProductCode(PDVError):
    error_code = "DUPLICATE_PRODUCT_CODE"
    status_code_default = status.HTTP_409_CONFLICT

    def __init__(self, code: str):
        super().__init__(f"Ya existe un producto con el código: {code}", {"code": code})


# ==================== VALIDACIÓN ====================

class InvalidQuantity(PDVError):
    error_code = "INVALID_QUANTITY"

    def __init__(self, quantity: Any):
        super().__init__(
            f"Cantidad inválida: {quantity}. Debe ser mayor o igual a 1",
            {"quantity": quantity}
        )


class InvalidDiscount(PDVError):
    error_code = "INVALID_DISCOUNT"


class InvalidNotes(PDVError):
    error_code = "INVALID_NOTES"


class InsufficientStock(PDVError):
    error_code = "INSUFFICIENT_STOCK"

    def __init__(self, product_name: str, available: int, requested: int):
        super().__init__(
            f"Stock insuficiente para el producto: {product_name} "
            f"(stock: {available}, necesario: {requested})",
            {"product": product_name, "available": available, "requested": requested}
        )


class InsufficientPayment(PDVError):
    error_code = "INSUFFICIENT_PAYMENT"

    def __init__(self, tendered: Any, total: Any):
        super().__init__(
            f"Valor recibido ({tendered}) es menor que el total de la venta ({total})",
            {"amount_tendered": str(tendered), "total_amount": str(total)}
        )


class EmptySale(PDVError):
    error_code = "EMPTY_SALE"

    def __init__(self, sale_id: int):
        super().__init__(
            f"No es posible finalizar la venta {sale_id} sin items",
            {"sale_id": sale_id}
        )


class InvalidPrice(PDVError):
    error_code = "INVALID_PRICE"

    def __init__(self, price: Any):
        super().__init__(
            f"Precio inválido: {price}. No puede ser negativo",
            {"unit_price": str(price)}
        )
