# app/modules/products/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import or_
from typing import List, Optional, Tuple

from app.shared.database.models import Product


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    # ===== CRUD =====

    def save(self, product: Product) -> Product:
        self.db.add(product)
        self.db.flush()
        return product

    def get_by_id(self, product_id: int) -> Optional[Product]:
        return self.db.query(Product).filter(Product.id == product_id).first()

    def get_by_code(self, code: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.code == code).first()

    def code_exists(self, code: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Product.id).filter(Product.code == code)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        return query.first() is not None

    # ===== BÚSQUEDA =====

    def search(
        self,
        term: Optional[str] = None,
        category: Optional[str] = None,
        active_only: bool = True,
        page: int = 1,
        size: int = 20
    ) -> Tuple[List[Product], int]:
        """Buscar por código, nombre, marca o categoría; devuelve (página, total)"""
        query = self.db.query(Product)

        if active_only:
            query = query.filter(Product.is_active == True)
        if category:
            query = query.filter(Product.category == category)
        if term:
            pattern = f"%{term.strip()}%"
            query = query.filter(or_(
                Product.code.ilike(pattern),
                Product.name.ilike(pattern),
                Product.brand.ilike(pattern),
                Product.category.ilike(pattern)
            ))

        total = query.count()
        products = query.order_by(Product.name, Product.id).offset((page - 1) * size).limit(size).all()
        return products, total

    def low_stock(self) -> List[Product]:
        return self.db.query(Product).filter(
            Product.is_active == True,
            Product.current_stock <= Product.minimum_stock
        ).order_by(Product.current_stock, Product.name).all()

    def out_of_stock(self) -> List[Product]:
        return self.db.query(Product).filter(
            Product.is_active == True,
            Product.current_stock == 0
        ).order_by(Product.name).all()

    def distinct_categories(self) -> List[str]:
        rows = self.db.query(Product.category).filter(
            Product.category.isnot(None),
            Product.is_active == True
        ).distinct().order_by(Product.category).all()
        return [row[0] for row in rows]

    def distinct_brands(self) -> List[str]:
        rows = self.db.query(Product.brand).filter(
            Product.brand.isnot(None),
            Product.is_active == True
        ).distinct().order_by(Product.brand).all()
        return [row[0] for row in rows]
