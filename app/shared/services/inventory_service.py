from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy.orm import Session
import logging

from app.core.exceptions import InsufficientStock, ProductNotFound
from app.shared.database.models import Product, InventoryChange

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Libro de stock: cantidad disponible por producto.

    No hace commit: las operaciones se ejecutan dentro de la unidad de
    trabajo del llamador (servicio de ventas o de productos), que decide
    commit o rollback.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int, for_update: bool = False) -> Product:
        query = self.db.query(Product).filter(Product.id == product_id)
        if for_update:
            query = query.with_for_update()
        product = query.first()
        if not product:
            raise ProductNotFound(product_id)
        return product

    def get_available_quantity(self, product_id: int) -> int:
        return self.get_product(product_id).current_stock

    def ensure_available(self, product: Product, quantity: int) -> None:
        """
        Verificación sin bloqueo (solo lectura).

        Es orientativa: el stock solo se descuenta al finalizar la venta.
        """
        if quantity > product.current_stock:
            raise InsufficientStock(product.name, product.current_stock, quantity)

    def adjust_quantity(
        self,
        product_id: int,
        delta: int,
        change_type: str = "adjustment",
        user_id: Optional[int] = None,
        reference_id: Optional[int] = None,
        notes: Optional[str] = None
    ) -> bool:
        """
        Aplicar delta (negativo para consumo) con bloqueo de fila.

        Raises:
            ProductNotFound: si el producto no existe
            InsufficientStock: si el resultado sería negativo; el stock no cambia
        """
        self.adjust_batch(
            [(product_id, delta)],
            change_type=change_type,
            user_id=user_id,
            reference_id=reference_id,
            notes=notes
        )
        return True

    def adjust_batch(
        self,
        adjustments: Iterable[Tuple[int, int]],
        change_type: str = "adjustment",
        user_id: Optional[int] = None,
        reference_id: Optional[int] = None,
        notes: Optional[str] = None
    ) -> List[Product]:
        """
        Ajustar varios productos como una sola operación: todos o ninguno.

        Proceso:
        1. Agrupar deltas por producto
        2. Bloquear filas (SELECT FOR UPDATE, ordenado por id)
        3. Validar TODOS los resultados antes de modificar
        4. Aplicar y registrar InventoryChange por producto

        Returns:
            List[Product]: productos ajustados, ordenados por id
        """
        deltas: Dict[int, int] = {}
        for product_id, delta in adjustments:
            deltas[product_id] = deltas.get(product_id, 0) + delta

        if not deltas:
            return []

        product_ids = sorted(deltas)
        products = self.db.query(Product).filter(
            Product.id.in_(product_ids)
        ).order_by(Product.id).with_for_update().all()

        found = {product.id: product for product in products}
        missing = [pid for pid in product_ids if pid not in found]
        if missing:
            raise ProductNotFound(missing[0])

        for product_id in product_ids:
            product = found[product_id]
            if product.current_stock + deltas[product_id] < 0:
                logger.warning(
                    f"Ajuste rechazado - Producto {product.code}: "
                    f"stock {product.current_stock}, delta {deltas[product_id]}"
                )
                raise InsufficientStock(product.name, product.current_stock, -deltas[product_id])

        changes = []
        for product_id in product_ids:
            product = found[product_id]
            quantity_before = product.current_stock
            product.adjust_stock(deltas[product_id])
            changes.append(InventoryChange(
                product_id=product.id,
                change_type=change_type,
                quantity_before=quantity_before,
                quantity_after=product.current_stock,
                user_id=user_id,
                reference_id=reference_id,
                notes=notes
            ))

        self.db.add_all(changes)
        self.db.flush()
        logger.info(f"Stock ajustado ({change_type}) para {len(changes)} productos")

        return [found[pid] for pid in product_ids]
