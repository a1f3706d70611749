# Overview: Pytest coverage for bulk export, import and clear.

import pytest

from shoppos.models import Category, Employee, Product, PurchaseInvoice, Sale, SaleItem, User
from shoppos.services import data_service
from shoppos.services.data_service import DataImportError
from shoppos.services.transaction_service import record_sale
from shoppos.services.user_service import create_user


@pytest.fixture
def seeded(db_session, products, employee):
    cola, chips = products
    sale = record_sale({
        "invoice_number": "INV-1",
        "total_amount": 15,
        "employee_id": employee.id,
        "items": [
            {"product_id": cola.id, "quantity": 1, "unit_price": 10},
            {"product_id": chips.id, "quantity": 2, "unit_price": 2.5},
        ],
    })
    return sale.id


class TestExport:
    def test_snapshot_shape(self, db_session, seeded):
        payload = data_service.export_data()
        assert set(payload) == {"categories", "products", "employees", "sales", "purchaseInvoices", "exportedAt"}
        assert payload["exportedAt"].endswith("Z")
        assert payload["sales"][0]["id"] == seeded
        assert len(payload["sales"][0]["items"]) == 2


class TestImport:
    def test_round_trip_preserves_ids(self, db_session, seeded):
        exported = data_service.export_data()
        data_service.clear_data()
        assert db_session.query(Sale).count() == 0

        counts = data_service.import_data(exported)

        assert counts == {"categories": 1, "products": 2, "employees": 1, "sales": 1, "purchaseInvoices": 0}
        sale = db_session.get(Sale, seeded)
        assert sale.invoice_number == "INV-1"
        assert [i.product_name for i in sale.items] == ["Cola", "Chips"]
        assert sale.created_at.isoformat().startswith(exported["sales"][0]["created_at"][:19])

    def test_replaces_existing_data(self, db_session, seeded):
        data_service.import_data({"categories": [{"id": 9, "name": "Only", "color": "#fff"}]})
        assert [c.name for c in db_session.query(Category).all()] == ["Only"]
        assert db_session.query(Product).count() == 0
        assert db_session.query(Sale).count() == 0

    def test_failure_leaves_previous_data(self, db_session, seeded):
        bad = {
            "products": [{"id": 1, "name": "Tea", "price": 1, "category_id": 999}],
        }
        with pytest.raises(DataImportError):
            data_service.import_data(bad)
        assert db_session.query(Sale).count() == 1
        assert db_session.query(SaleItem).count() == 2
        assert db_session.query(Product).count() == 2

    @pytest.mark.parametrize("payload", [
        [],
        {"categories": "nope"},
        {"categories": [{"id": 1, "color": "#fff"}]},
        {"sales": [{"id": "s1", "invoice_number": "X", "total_amount": 1, "created_at": "yesterday"}]},
    ])
    def test_malformed(self, db_session, payload):
        with pytest.raises(DataImportError):
            data_service.import_data(payload)


class TestSequenceReset:
    def test_sqlite_needs_none(self):
        assert data_service.sequence_reset_statements("sqlite") == []

    def test_postgresql_moves_each_serial_sequence(self):
        statements = [str(s) for s in data_service.sequence_reset_statements("postgresql")]
        assert len(statements) == 3
        for table in ("categories", "products", "employees"):
            assert any(f"pg_get_serial_sequence('{table}', 'id')" in s for s in statements)
        assert all("MAX(id) IS NOT NULL" in s for s in statements)

    def test_import_on_sqlite_keeps_next_ids_free(self, db_session):
        data_service.import_data({"categories": [{"id": 100000, "name": "Imported", "color": "#fff"}]})
        db_session.add(Category(name="Fresh", color="#000"))
        db_session.commit()
        assert db_session.query(Category).filter(Category.name == "Fresh").one().id == 100001


class TestClear:
    def test_keeps_users(self, db_session, seeded):
        create_user(patch={"username": "admin", "email": "admin@shop.local", "role": "admin"}, password="admin123")
        counts = data_service.clear_data()
        assert counts["sales"] == 1
        assert counts["sale_items"] == 2
        assert db_session.query(Employee).count() == 0
        assert db_session.query(PurchaseInvoice).count() == 0
        assert db_session.query(User).count() == 1
