from contextlib import contextmanager
from sqlalchemy.orm import Session
from sqlalchemy import and_, func, desc
from typing import Dict, Any, List, Optional, Tuple
from datetime import datetime, date, time
from decimal import Decimal
import logging

from app.shared.database.models import Sale, SaleItem, SaleStatus, to_money

logger = logging.getLogger(__name__)


class SalesRepository:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def unit_of_work(self):
        """
        Una operación = una transacción.

        Commit al salir sin errores; ante cualquier excepción rollback y
        se relanza, de modo que no se persiste ninguna mutación parcial.
        """
        try:
            yield self.db
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ==================== ESCRITURA ====================

    def save(self, sale: Sale) -> Sale:
        """Persistir venta e items juntos (flush; el commit es de la unidad de trabajo)"""
        self.db.add(sale)
        self.db.flush()
        return sale

    def delete_by_status(self, status: SaleStatus) -> int:
        """
        Eliminar ventas por estado junto con sus items.

        Se hace flush inmediato para que el DELETE llegue a la base antes de
        cualquier INSERT posterior en la misma transacción.
        """
        sales = self.find_by_status(status)
        for sale in sales:
            self.db.delete(sale)
        self.db.flush()
        if sales:
            logger.info(f"{len(sales)} ventas {status.value} eliminadas")
        return len(sales)

    # ==================== LECTURA ====================

    def find_by_id(self, sale_id: int, for_update: bool = False) -> Optional[Sale]:
        query = self.db.query(Sale).filter(Sale.id == sale_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def find_pending_sale(self) -> Optional[Sale]:
        """Venta pendiente más reciente"""
        return self.db.query(Sale).filter(
            Sale.status == SaleStatus.PENDING.value
        ).order_by(Sale.sale_date.desc(), Sale.id.desc()).first()

    def find_by_status(self, status: SaleStatus) -> List[Sale]:
        return self.db.query(Sale).filter(
            Sale.status == status.value
        ).order_by(Sale.sale_date.desc()).all()

    def list_sales(
        self,
        status: Optional[SaleStatus] = None,
        target_date: Optional[date] = None,
        page: int = 0,
        size: int = 20
    ) -> Tuple[List[Sale], bool]:
        """
        Historial de ventas, más recientes primero.

        Returns:
            (ventas de la página, hay_más_páginas)
        """
        query = self.db.query(Sale)
        if status is not None:
            query = query.filter(Sale.status == status.value)
        if target_date is not None:
            start, end = self.day_bounds(target_date)
            query = query.filter(and_(Sale.sale_date >= start, Sale.sale_date <= end))

        rows = query.order_by(
            Sale.sale_date.desc(), Sale.id.desc()
        ).offset(page * size).limit(size + 1).all()

        return rows[:size], len(rows) > size

    # ==================== AGREGADOS ====================

    def count_by_status(self, status: SaleStatus) -> int:
        return self.db.query(func.count(Sale.id)).filter(
            Sale.status == status.value
        ).scalar() or 0

    def count_between(self, start: datetime, end: datetime) -> int:
        return self.db.query(func.count(Sale.id)).filter(
            and_(Sale.sale_date >= start, Sale.sale_date <= end)
        ).scalar() or 0

    def total_finalized_between(self, start: datetime, end: datetime) -> Decimal:
        total = self.db.query(func.sum(Sale.total_amount)).filter(
            and_(
                Sale.status == SaleStatus.FINALIZED.value,
                Sale.sale_date >= start,
                Sale.sale_date <= end
            )
        ).scalar()
        return to_money(total)

    def stats_by_payment_method(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        rows = self.db.query(
            Sale.payment_method,
            func.count(Sale.id).label('sales_count'),
            func.sum(Sale.total_amount).label('total_amount')
        ).filter(
            and_(
                Sale.status == SaleStatus.FINALIZED.value,
                Sale.sale_date >= start,
                Sale.sale_date <= end
            )
        ).group_by(Sale.payment_method).order_by(desc('total_amount')).all()

        return [
            {
                "payment_method": row.payment_method,
                "sales_count": row.sales_count,
                "total_amount": to_money(row.total_amount)
            }
            for row in rows
        ]

    def stats_by_day(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        sale_day = func.date(Sale.sale_date)
        rows = self.db.query(
            sale_day.label('day'),
            func.count(Sale.id).label('sales_count'),
            func.sum(Sale.total_amount).label('total_amount')
        ).filter(
            and_(
                Sale.status == SaleStatus.FINALIZED.value,
                Sale.sale_date >= start,
                Sale.sale_date <= end
            )
        ).group_by(sale_day).order_by(sale_day).all()

        return [
            {
                "day": str(row.day),
                "sales_count": row.sales_count,
                "total_amount": to_money(row.total_amount)
            }
            for row in rows
        ]

    def top_selling_products(self, limit: int) -> List[Dict[str, Any]]:
        """Productos más vendidos (unidades) en ventas finalizadas"""
        units = func.sum(SaleItem.quantity).label('units_sold')
        rows = self.db.query(
            SaleItem.product_id,
            SaleItem.product_code,
            SaleItem.product_name,
            units,
            func.sum(SaleItem.subtotal).label('revenue')
        ).join(
            Sale, SaleItem.sale_id == Sale.id
        ).filter(
            Sale.status == SaleStatus.FINALIZED.value
        ).group_by(
            SaleItem.product_id, SaleItem.product_code, SaleItem.product_name
        ).order_by(desc('units_sold')).limit(limit).all()

        return [
            {
                "product_id": row.product_id,
                "product_code": row.product_code,
                "product_name": row.product_name,
                "units_sold": int(row.units_sold or 0),
                "revenue": to_money(row.revenue)
            }
            for row in rows
        ]

    @staticmethod
    def day_bounds(target_date: date) -> Tuple[datetime, datetime]:
        return datetime.combine(target_date, time.min), datetime.combine(target_date, time.max)
