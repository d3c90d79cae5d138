# app/modules/sales/service.py
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional
from decimal import Decimal
import logging

from .repository import SalesRepository
from app.config.settings import settings
from app.core.exceptions import (
    EmptySale, InsufficientPayment, InvalidDiscount, InvalidNotes, InvalidQuantity,
    InvalidState, ItemNotFound, PendingSaleConflict, SaleNotFound
)
from app.shared.database.models import (
    PaymentMethod, Sale, SaleItem, SaleStatus, to_money
)
from app.shared.services.inventory_service import InventoryService


logger = logging.getLogger(__name__)

class SalesService:
    """
    Orquestador del ciclo de vida de la venta.

    Único componente que crea, modifica y persiste ventas. Cada operación:
    - Carga la venta (bloqueo de fila)
    - Valida contra el estado de la venta y el stock ANTES de mutar
    - Muta el agregado (lógica pura en Sale/SaleItem)
    - Persiste en una sola transacción (rollback completo ante error)
    """

    def __init__(self, db: Session, user_id: Optional[int] = None):
        self.db = db
        self.user_id = user_id
        self.repository = SalesRepository(db)
        self.inventory = InventoryService(db)

    # ==================== VENTA PENDIENTE ====================

    def get_or_create_pending_sale(
        self,
        payment_method: PaymentMethod = PaymentMethod.CASH
    ) -> Sale:
        """Devolver la venta pendiente existente o crear una nueva"""
        sale = self.repository.find_pending_sale()
        if sale:
            return sale

        try:
            return self.create_sale(payment_method)
        except PendingSaleConflict:
            # Otro cajero creó la venta pendiente entre la lectura y el insert
            sale = self.repository.find_pending_sale()
            if sale:
                logger.info(f"Reutilizando venta pendiente {sale.id} creada en paralelo")
                return sale
            raise

    def create_sale(self, payment_method: PaymentMethod = PaymentMethod.CASH) -> Sale:
        """
        Crear una venta nueva eliminando las pendientes anteriores.

        El índice único parcial sobre status='PENDING' garantiza que dos
        creaciones concurrentes no dejen dos ventas pendientes: la que pierde
        la carrera recibe PendingSaleConflict.
        """
        payment_method = PaymentMethod(payment_method)

        with self.repository.unit_of_work():
            removed = self.repository.delete_by_status(SaleStatus.PENDING)
            sale = Sale(payment_method, seller_id=self.user_id)
            try:
                self.repository.save(sale)
            except IntegrityError:
                logger.warning("Conflicto creando venta pendiente (índice único)")
                raise PendingSaleConflict()

        logger.info(f"Venta {sale.id} creada ({payment_method.value}), pendientes eliminadas: {removed}")
        return sale

    def cancel_all_pending_sales(self) -> int:
        """Pasar todas las ventas pendientes a CANCELLED"""
        with self.repository.unit_of_work():
            pending = self.repository.find_by_status(SaleStatus.PENDING)
            for sale in pending:
                sale.cancel()
                self.repository.save(sale)

        logger.info(f"{len(pending)} ventas pendientes canceladas")
        return len(pending)

    # ==================== CONSULTA ====================

    def get_sale(self, sale_id: int) -> Sale:
        sale = self.repository.find_by_id(sale_id)
        if not sale:
            raise SaleNotFound(sale_id)
        return sale

    def get_receipt_sale(self, sale_id: int) -> Sale:
        """Solo las ventas finalizadas tienen comprobante"""
        sale = self.get_sale(sale_id)
        if not sale.is_finalized:
            raise InvalidState(f"La venta {sale_id} no está finalizada: estado {sale.status}")
        return sale

    # ==================== ITEMS ====================

    def add_item(self, sale_id: int, product_id: int, quantity: int) -> Sale:
        """
        Agregar producto a la venta.

        Si el producto ya está en la venta se suma la cantidad a la línea
        existente (conservando su precio). Si no, se crea una línea nueva con
        el precio actual del catálogo. El stock no se descuenta aquí.
        """
        with self.repository.unit_of_work():
            sale = self._load_sale(sale_id)
            self._require_pending(sale, "agregar items a")

            if quantity is None or quantity < 1:
                raise InvalidQuantity(quantity)

            product = self.inventory.get_product(product_id)
            self.inventory.ensure_available(product, quantity)

            existing = sale.find_item_by_product(product_id)
            if existing:
                merged_quantity = existing.quantity + quantity
                self.inventory.ensure_available(product, merged_quantity)
                existing.set_quantity(merged_quantity)
                sale.recalculate_total()
            else:
                sale.add_item(SaleItem.create(product, quantity))

            self.repository.save(sale)

        logger.info(f"Venta {sale_id}: +{quantity} x producto {product_id} - Total: {sale.total_amount}")
        return sale

    def remove_item(self, sale_id: int, item_id: int) -> Sale:
        with self.repository.unit_of_work():
            sale = self._load_sale(sale_id)
            self._require_pending(sale, "remover items de")

            item = self._require_item(sale, item_id)
            sale.remove_item(item)
            self.repository.save(sale)

        logger.info(f"Venta {sale_id}: item {item_id} removido - Total: {sale.total_amount}")
        return sale

    def update_item_quantity(self, sale_id: int, item_id: int, new_quantity: int) -> Sale:
        with self.repository.unit_of_work():
            sale = self._load_sale(sale_id)
            self._require_pending(sale, "modificar items de")

            item = self._require_item(sale, item_id)
            if new_quantity is None or new_quantity < 1:
                raise InvalidQuantity(new_quantity)

            product = self.inventory.get_product(item.product_id)
            self.inventory.ensure_available(product, new_quantity)

            item.set_quantity(new_quantity)
            sale.recalculate_total()
            self.repository.save(sale)

        logger.info(f"Venta {sale_id}: item {item_id} cantidad {new_quantity} - Total: {sale.total_amount}")
        return sale

    def increment_item(self, sale_id: int, item_id: int) -> Sale:
        """Botón +1 del carrito"""
        sale = self.get_sale(sale_id)
        self._require_pending(sale, "modificar items de")
        item = self._require_item(sale, item_id)
        return self.update_item_quantity(sale_id, item_id, item.quantity + 1)

    def decrement_item(self, sale_id: int, item_id: int) -> Sale:
        """Botón -1 del carrito; en cantidad 1 no hace nada"""
        with self.repository.unit_of_work():
            sale = self._load_sale(sale_id)
            self._require_pending(sale, "modificar items de")

            item = self._require_item(sale, item_id)
            if item.can_decrement():
                item.decrement()
                sale.recalculate_total()
                self.repository.save(sale)

        return sale

    # ==================== DESCUENTO / NOTAS ====================

    def apply_discount(self, sale_id: int, discount: Decimal) -> Sale:
        with self.repository.unit_of_work():
            sale = self._load_sale(sale_id)
            self._require_pending(sale, "aplicar descuento a")

            discount = to_money(discount)
            if discount < 0:
                raise InvalidDiscount(f"El descuento no puede ser negativo: {discount}")

            sale.discount = discount
            sale.recalculate_total()
            self.repository.save(sale)

        logger.info(f"Venta {sale_id}: descuento {discount} - Total: {sale.total_amount}")
        return sale

    def update_notes(self, sale_id: int, notes: Optional[str]) -> Sale:
        with self.repository.unit_of_work():
            sale = self._load_sale(sale_id)
            self._require_pending(sale, "modificar las observaciones de")
            sale.notes = self._validate_notes(notes)
            self.repository.save(sale)

        return sale

    # ==================== FINALIZAR / CANCELAR ====================

    def finalize_sale(
        self,
        sale_id: int,
        amount_tendered: Decimal,
        payment_method: Optional[PaymentMethod] = None,
        notes: Optional[str] = None
    ) -> Sale:
        """
        Finalizar venta y descontar stock.

        Proceso (transacción única):
        1. Validar estado, items y monto recibido
        2. Registrar pago y finalizar (calcula cambio)
        3. Descontar stock de TODAS las líneas en un solo lote
        4. Commit

        Si el libro de stock rechaza cualquier línea se hace rollback de
        todo: la venta sigue PENDING y ningún producto cambia.
        """
        with self.repository.unit_of_work():
            sale = self._load_sale(sale_id)
            if not sale.is_pending:
                raise InvalidState(f"La venta {sale_id} ya fue finalizada o cancelada")

            if not sale.items:
                raise EmptySale(sale_id)

            sale.recalculate_total()
            tendered = to_money(amount_tendered)
            if tendered < 0 or tendered < sale.total_amount:
                raise InsufficientPayment(tendered, sale.total_amount)

            method = PaymentMethod(payment_method) if payment_method else None
            validated_notes = self._validate_notes(notes) if notes is not None else None

            if method:
                sale.payment_method = method.value
            if validated_notes is not None:
                sale.notes = validated_notes

            sale.amount_tendered = tendered
            sale.finalize()

            self.inventory.adjust_batch(
                [(item.product_id, -item.quantity) for item in sale.items],
                change_type="sale",
                user_id=self.user_id,
                reference_id=sale.id,
                notes=f"Venta #{sale.id}"
            )

            self.repository.save(sale)

        logger.info(
            f"Venta {sale_id} finalizada - Total: {sale.total_amount}, "
            f"Recibido: {sale.amount_tendered}, Cambio: {sale.change_due}"
        )
        return sale

    def cancel_sale(self, sale_id: int) -> Sale:
        """
        Cancelar venta.

        Una venta finalizada no se puede cancelar; cancelar una ya cancelada
        no hace nada. No se toca el stock (nunca se descontó).
        """
        with self.repository.unit_of_work():
            sale = self._load_sale(sale_id)

            if sale.is_finalized:
                raise InvalidState(f"No es posible cancelar la venta {sale_id}: ya fue finalizada")

            if sale.is_cancelled:
                return sale

            sale.cancel()
            self.repository.save(sale)

        logger.info(f"Venta {sale_id} cancelada")
        return sale

    # MÉTODOS PRIVADOS HELPERS

    def _load_sale(self, sale_id: int) -> Sale:
        sale = self.repository.find_by_id(sale_id, for_update=True)
        if not sale:
            raise SaleNotFound(sale_id)
        return sale

    def _require_pending(self, sale: Sale, action: str) -> None:
        if not sale.is_pending:
            raise InvalidState(
                f"No es posible {action} la venta {sale.id}: estado {sale.status}"
            )

    def _require_item(self, sale: Sale, item_id: int) -> SaleItem:
        item = sale.find_item(item_id)
        if not item:
            raise ItemNotFound(item_id, sale.id)
        return item

    def _validate_notes(self, notes: Optional[str]) -> Optional[str]:
        if notes is None:
            return None
        notes = notes.strip()
        if len(notes) > settings.notes_max_length:
            raise InvalidNotes(
                f"Las observaciones deben tener como máximo {settings.notes_max_length} caracteres"
            )
        return notes or None
