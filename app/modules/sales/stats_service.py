# app/modules/sales/stats_service.py
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional, Tuple
from datetime import date, datetime, time
from decimal import Decimal
import logging

from .repository import SalesRepository
from app.config.settings import settings
from app.shared.database.models import Product, Sale, SaleStatus

logger = logging.getLogger(__name__)


class SalesStatsService:
    """Consultas de solo lectura para historial y dashboard"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = SalesRepository(db)

    def list_sales(
        self,
        status: Optional[SaleStatus] = None,
        target_date: Optional[date] = None,
        page: int = 0,
        size: Optional[int] = None
    ) -> Tuple[List[Sale], bool]:
        size = min(size or settings.default_page_size, settings.max_page_size)
        return self.repository.list_sales(status, target_date, page, size)

    def total_sales_today(self) -> Decimal:
        start, end = SalesRepository.day_bounds(date.today())
        return self.repository.total_finalized_between(start, end)

    def total_sales_month(self) -> Decimal:
        start, end = self._month_bounds(date.today())
        return self.repository.total_finalized_between(start, end)

    def count_sales_today(self) -> int:
        start, end = SalesRepository.day_bounds(date.today())
        return self.repository.count_between(start, end)

    def count_by_status(self) -> Dict[str, int]:
        return {
            status.value: self.repository.count_by_status(status)
            for status in SaleStatus
        }

    def stats_by_payment_method(self, start_date: date, end_date: date) -> List[Dict[str, Any]]:
        start, end = self._range_bounds(start_date, end_date)
        return self.repository.stats_by_payment_method(start, end)

    def stats_by_day(self, start_date: date, end_date: date) -> List[Dict[str, Any]]:
        start, end = self._range_bounds(start_date, end_date)
        return self.repository.stats_by_day(start, end)

    def top_products(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self.repository.top_selling_products(limit or settings.top_products_limit)

    def dashboard_summary(self) -> Dict[str, Any]:
        """Resumen para el dashboard"""
        low_stock = self.db.query(Product).filter(
            Product.is_active == True,
            Product.current_stock <= Product.minimum_stock
        ).count()

        return {
            "total_today": self.total_sales_today(),
            "total_month": self.total_sales_month(),
            "sales_today": self.count_sales_today(),
            "by_status": self.count_by_status(),
            "low_stock_products": low_stock,
            "top_products": self.top_products(5)
        }

    @staticmethod
    def _month_bounds(target: date):
        first = target.replace(day=1)
        if first.month == 12:
            next_first = first.replace(year=first.year + 1, month=1)
        else:
            next_first = first.replace(month=first.month + 1)
        last = date.fromordinal(next_first.toordinal() - 1)
        return datetime.combine(first, time.min), datetime.combine(last, time.max)

    @staticmethod
    def _range_bounds(start_date: date, end_date: date):
        if end_date < start_date:
            start_date, end_date = end_date, start_date
        return datetime.combine(start_date, time.min), datetime.combine(end_date, time.max)
