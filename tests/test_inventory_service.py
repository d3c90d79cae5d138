import pytest

from app.core.exceptions import InsufficientStock, ProductNotFound
from app.shared.database.models import InventoryChange, Product
from app.shared.services.inventory_service import InventoryService


def test_available_quantity(db, make_product):
    product = make_product(stock=7)
    assert InventoryService(db).get_available_quantity(product.id) == 7


def test_unknown_product(db):
    with pytest.raises(ProductNotFound):
        InventoryService(db).get_available_quantity(999)


def test_adjust_quantity_debit_and_credit(db, make_product):
    product = make_product(stock=5)
    service = InventoryService(db)

    assert service.adjust_quantity(product.id, -3, change_type="sale", reference_id=1)
    assert service.adjust_quantity(product.id, 2)
    db.commit()

    db.refresh(product)
    assert product.current_stock == 4

    changes = db.query(InventoryChange).order_by(InventoryChange.id).all()
    assert [(c.quantity_before, c.quantity_after) for c in changes] == [(5, 2), (2, 4)]
    assert changes[0].change_type == "sale"


def test_adjust_quantity_never_goes_negative(db, make_product):
    product = make_product(stock=2)
    service = InventoryService(db)

    with pytest.raises(InsufficientStock):
        service.adjust_quantity(product.id, -3)

    db.rollback()
    db.refresh(product)
    assert product.current_stock == 2
    assert db.query(InventoryChange).count() == 0


def test_adjust_batch_is_all_or_nothing(db, make_product):
    first = make_product(code="A", stock=10)
    second = make_product(code="B", stock=1)
    service = InventoryService(db)

    with pytest.raises(InsufficientStock):
        service.adjust_batch([(first.id, -4), (second.id, -2)])

    assert first.current_stock == 10
    assert second.current_stock == 1


def test_adjust_batch_merges_deltas_per_product(db, make_product):
    product = make_product(stock=10)
    service = InventoryService(db)

    adjusted = service.adjust_batch([(product.id, -3), (product.id, -4)])
    db.commit()

    assert [p.id for p in adjusted] == [product.id]
    assert db.get(Product, product.id).current_stock == 3


def test_adjust_batch_unknown_product(db, make_product):
    product = make_product(stock=10)
    with pytest.raises(ProductNotFound):
        InventoryService(db).adjust_batch([(product.id, -1), (404, -1)])
    assert product.current_stock == 10
