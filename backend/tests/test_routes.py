"""
HTTP route tests for ShopPOS.

Verifies the error taxonomy maps onto status codes:
- 400 validation / blocked delete
- 404 missing entity
- 409 duplicate invoice number or unique field
"""

import pytest

from shoppos.models import Sale


def _sale_body(employee_id, product_id, invoice_number="INV-1"):
    return {
        "invoice_number": invoice_number,
        "total_amount": 20,
        "employee_id": employee_id,
        "items": [{"product_id": product_id, "quantity": 2, "unit_price": 10}],
    }


# =============================================================================
# SYSTEM
# =============================================================================


class TestHealth:
    def test_health(self, client, db_session):
        response = client.get('/api/health')
        assert response.status_code == 200
        assert response.json['status'] == 'healthy'
        assert response.json['checks']['database']['details']['sales'] == 0

    def test_cors_for_allowed_origin(self, client, db_session):
        response = client.get('/api/health', headers={'Origin': 'http://localhost:5173'})
        assert response.headers['Access-Control-Allow-Origin'] == 'http://localhost:5173'
        response = client.get('/api/health', headers={'Origin': 'http://evil.example'})
        assert 'Access-Control-Allow-Origin' not in response.headers


# =============================================================================
# SALES AND PURCHASES
# =============================================================================


class TestSalesRoutes:
    def test_create_then_fetch(self, client, products, employee):
        cola, _ = products
        response = client.post('/api/sales', json=_sale_body(employee.id, cola.id))
        assert response.status_code == 201
        sale = response.json
        assert sale['total_amount'] == 20.0
        assert sale['items'][0]['total_price'] == 20.0

        assert client.get(f"/api/sales/{sale['id']}").json['invoice_number'] == 'INV-1'
        assert client.get('/api/sales/invoice/INV-1').json['id'] == sale['id']
        assert [s['id'] for s in client.get('/api/sales').json] == [sale['id']]

    def test_validation_is_400(self, client, products, employee, db_session):
        cola, _ = products
        body = _sale_body(employee.id, cola.id)
        body['items'] = []
        response = client.post('/api/sales', json=body)
        assert response.status_code == 400
        assert response.json['kind'] == 'validation'
        assert db_session.query(Sale).count() == 0

    def test_unknown_product_is_404(self, client, products, employee, db_session):
        response = client.post('/api/sales', json=_sale_body(employee.id, 9999))
        assert response.status_code == 404
        assert response.json['kind'] == 'not_found'
        assert db_session.query(Sale).count() == 0

    def test_duplicate_invoice_is_409_with_suggestion(self, client, products, employee, db_session):
        cola, _ = products
        assert client.post('/api/sales', json=_sale_body(employee.id, cola.id)).status_code == 201

        response = client.post('/api/sales', json=_sale_body(employee.id, cola.id))
        assert response.status_code == 409
        assert response.json['kind'] == 'conflict'
        assert response.json['details'] == {
            'invoice_number': 'INV-1',
            'suggested_invoice_number': 'INV-1-1',
        }
        assert db_session.query(Sale).count() == 1

    def test_missing_sale_is_404(self, client, db_session):
        assert client.get('/api/sales/does-not-exist').status_code == 404
        assert client.get('/api/sales/invoice/NOPE').status_code == 404

    def test_next_invoice_number(self, client, db_session):
        sale_number = client.get('/api/sales/next-invoice-number').json['invoice_number']
        purchase_number = client.get('/api/purchases/next-invoice-number').json['invoice_number']
        assert sale_number.startswith('INV-')
        assert purchase_number.startswith('PUR-')

    def test_purchase_creates_product(self, client, db_session):
        response = client.post('/api/purchases', json={
            'invoice_number': 'PUR-1',
            'supplier_name': 'Acme',
            'total_amount': 12,
            'items': [{'product_name': 'Rice', 'quantity': 3, 'unit_price': 4, 'sale_price': 6}],
        })
        assert response.status_code == 201
        product = client.get(f"/api/products/{response.json['items'][0]['product_id']}").json
        assert product['name'] == 'Rice'
        assert product['price'] == 6.0
        assert product['stock'] == 0


# =============================================================================
# CATALOG, STAFF, USERS
# =============================================================================


class TestCatalogRoutes:
    def test_product_crud(self, client, category, db_session):
        response = client.post('/api/products', json={
            'name': 'Tea', 'price': 3, 'barcode': '444', 'category_id': category.id,
        })
        assert response.status_code == 201
        product_id = response.json['id']

        assert client.get('/api/products/barcode/444').json['id'] == product_id
        response = client.put(f'/api/products/{product_id}', json={'price': 3.5})
        assert response.json['price'] == 3.5
        assert client.delete(f'/api/products/{product_id}').status_code == 200
        assert client.get(f'/api/products/{product_id}').status_code == 404

    def test_bad_product_payloads(self, client, db_session):
        assert client.post('/api/products', json={'name': 'Tea'}).status_code == 400
        assert client.post('/api/products', json={'name': 'Tea', 'price': -1}).status_code == 400
        assert client.post('/api/products', json={'name': 'Tea', 'price': 1, 'sku': 'x'}).status_code == 400

    def test_duplicate_barcode_is_409(self, client, products):
        response = client.post('/api/products', json={'name': 'Tea', 'price': 1, 'barcode': '111'})
        assert response.status_code == 409

    def test_blocked_category_delete_is_400(self, client, products, category):
        response = client.delete(f'/api/categories/{category.id}')
        assert response.status_code == 400
        assert response.json['kind'] == 'integrity'

    def test_blocked_employee_delete_is_400(self, client, products, employee):
        cola, _ = products
        client.post('/api/sales', json=_sale_body(employee.id, cola.id))
        response = client.delete(f'/api/employees/{employee.id}')
        assert response.status_code == 400
        assert response.json['error'] == 'Cannot delete employee. They have sales records.'

    def test_employee_create(self, client, db_session):
        response = client.post('/api/employees', json={'name': 'Ana', 'phone': '555-1', 'commission': 5})
        assert response.status_code == 201
        assert response.json['commission'] == 5.0
        response = client.post('/api/employees', json={'name': 'Ana', 'phone': '555-2', 'commission': 101})
        assert response.status_code == 400


class TestUserRoutes:
    @pytest.fixture
    def user_id(self, client, db_session):
        response = client.post('/api/users', json={
            'username': 'maria', 'email': 'maria@shop.local', 'role': 'manager', 'password': 'secret1',
        })
        assert response.status_code == 201
        assert 'password_hash' not in response.json
        return response.json['id']

    def test_authenticate(self, client, user_id):
        response = client.post('/api/users/authenticate', json={'username': 'maria', 'password': 'secret1'})
        assert response.status_code == 200
        assert response.json['user']['id'] == user_id

        response = client.post('/api/users/authenticate', json={'username': 'maria', 'password': 'wrong1'})
        assert response.status_code == 401
        assert response.json['kind'] == 'auth'

    @pytest.mark.parametrize('body', [
        {'username': 'maria', 'password': 123456},
        {'username': ['maria'], 'password': 'secret1'},
        {'username': 'maria'},
    ])
    def test_malformed_credentials_are_400(self, client, user_id, body):
        response = client.post('/api/users/authenticate', json=body)
        assert response.status_code == 400
        assert response.json['kind'] == 'validation'

    def test_password_required(self, client, db_session):
        response = client.post('/api/users', json={'username': 'x', 'email': 'x@y', 'role': 'employee'})
        assert response.status_code == 400

    def test_invalid_role(self, client, db_session):
        response = client.post('/api/users', json={
            'username': 'x', 'email': 'x@y', 'role': 'owner', 'password': 'secret1',
        })
        assert response.status_code == 400


# =============================================================================
# REPORTS AND UTILITY
# =============================================================================


class TestReportRoutes:
    def test_sales_report(self, client, products, employee):
        cola, _ = products
        client.post('/api/sales', json=_sale_body(employee.id, cola.id))
        response = client.get('/api/reports/sales')
        assert response.status_code == 200
        assert response.json['rows'][0]['count'] == 1
        assert response.json['rows'][0]['total_amount'] == 20.0

    def test_top_products_limit(self, client, products, employee):
        cola, _ = products
        client.post('/api/sales', json=_sale_body(employee.id, cola.id))
        rows = client.get('/api/reports/top-products?limit=1').json['rows']
        assert rows == [{'product_id': cola.id, 'name': 'Cola', 'total_quantity': 2, 'total_amount': 20.0}]

    def test_bad_inputs(self, client, db_session):
        assert client.get('/api/reports/sales?from=yesterday').status_code == 400
        assert client.get('/api/reports/top-products?limit=abc').status_code == 400
        assert client.get('/api/reports/unknown').status_code == 404


class TestUtilityRoutes:
    def test_export_import_clear(self, client, products, employee, db_session):
        cola, _ = products
        client.post('/api/sales', json=_sale_body(employee.id, cola.id))

        exported = client.get('/api/utility/export').json
        assert len(exported['sales']) == 1

        response = client.post('/api/utility/clear')
        assert response.status_code == 200
        assert db_session.query(Sale).count() == 0

        response = client.post('/api/utility/import', json=exported)
        assert response.status_code == 200
        assert response.json['imported']['sales'] == 1
        assert db_session.query(Sale).count() == 1

    def test_import_rejects_garbage(self, client, db_session):
        response = client.post('/api/utility/import', json={'products': 'nope'})
        assert response.status_code == 400
