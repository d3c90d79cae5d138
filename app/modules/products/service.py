# app/modules/products/service.py
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
import logging

from .repository import ProductRepository
from .schemas import ProductCreate, ProductUpdate
from app.core.exceptions import DuplicateProductCode, ProductNotFound
from app.shared.database.models import Product
from app.shared.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)


class ProductService:
    """Catálogo de productos. Cada operación de escritura hace commit o rollback completo."""

    def __init__(self, db: Session, user_id: Optional[int] = None):
        self.db = db
        self.user_id = user_id
        self.repository = ProductRepository(db)
        self.inventory = InventoryService(db)

    # ===== CONSULTAS =====

    def get_product(self, product_id: int) -> Product:
        product = self.repository.get_by_id(product_id)
        if not product:
            raise ProductNotFound(product_id)
        return product

    def get_by_code(self, code: str) -> Product:
        product = self.repository.get_by_code(code.strip())
        if not product:
            raise ProductNotFound(code)
        return product

    def search(
        self,
        term: Optional[str] = None,
        category: Optional[str] = None,
        active_only: bool = True,
        page: int = 1,
        size: int = 20
    ) -> Tuple[List[Product], int]:
        return self.repository.search(term, category, active_only, page, size)

    def low_stock(self) -> List[Product]:
        return self.repository.low_stock()

    def out_of_stock(self) -> List[Product]:
        return self.repository.out_of_stock()

    def categories(self) -> List[str]:
        return self.repository.distinct_categories()

    def brands(self) -> List[str]:
        return self.repository.distinct_brands()

    # ===== ESCRITURA =====

    def create_product(self, data: ProductCreate) -> Product:
        if self.repository.code_exists(data.code):
            raise DuplicateProductCode(data.code)

        product = Product(**data.model_dump(), is_active=True)
        try:
            self.repository.save(product)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateProductCode(data.code)

        self.db.refresh(product)
        logger.info(f"Producto {product.code} creado (id {product.id})")
        return product

    def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        product = self.get_product(product_id)
        changes = data.model_dump(exclude_unset=True)

        new_code = changes.get("code")
        if new_code and self.repository.code_exists(new_code, exclude_id=product_id):
            raise DuplicateProductCode(new_code)

        for key, value in changes.items():
            if value is not None:
                setattr(product, key, value)

        try:
            self.repository.save(product)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateProductCode(new_code or product.code)

        self.db.refresh(product)
        logger.info(f"Producto {product.code} actualizado: {sorted(changes)}")
        return product

    def set_active(self, product_id: int, active: bool) -> Product:
        """Activar o desactivar (eliminación lógica)"""
        product = self.get_product(product_id)
        product.is_active = active
        self.db.commit()
        self.db.refresh(product)
        logger.info(f"Producto {product.code} {'activado' if active else 'desactivado'}")
        return product

    def adjust_stock(self, product_id: int, delta: int, notes: Optional[str] = None) -> Product:
        """Ajuste manual de stock a través del libro de inventario"""
        try:
            self.inventory.adjust_quantity(
                product_id,
                delta,
                change_type="adjustment",
                user_id=self.user_id,
                notes=notes
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        product = self.get_product(product_id)
        self.db.refresh(product)
        logger.info(f"Stock ajustado - Producto {product.code}: delta {delta}, actual {product.current_stock}")
        return product
