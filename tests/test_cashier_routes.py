"""
Tests for Cashier Routes
Product grid, cart operations, saving and editing draft orders.
"""

import pytest
from flask import session

from pos_web.services.backend import BackendError

from conftest import ORDER_ID, make_order, make_product

XHR = {'X-Requested-With': 'XMLHttpRequest'}


@pytest.fixture
def products(backend):
    backend.list_products.return_value = [
        make_product(),
        make_product(id='p2', name='Es Teh', price=5000, category='Drink', color='#00FF00'),
    ]
    return backend.list_products.return_value


class TestCashierPage:

    def test_renders_products(self, auth_cashier, products):
        response = auth_cashier.get('/cashier/')
        assert response.status_code == 200
        assert b'Soto Ayam' in response.data
        assert b'Es Teh' in response.data
        assert b'Rp 15.000' in response.data

    def test_category_filter(self, auth_cashier, products):
        response = auth_cashier.get('/cashier/?category=Drink')
        assert b'Es Teh' in response.data
        assert b'>Soto Ayam<' not in response.data

    def test_search(self, auth_cashier, products):
        response = auth_cashier.get('/cashier/?search=soto')
        assert b'Soto Ayam' in response.data
        assert b'Es Teh</div>' not in response.data

    def test_backend_failure_shows_empty_grid(self, auth_cashier, backend):
        backend.list_products.side_effect = BackendError('boom', 500)
        response = auth_cashier.get('/cashier/')
        assert response.status_code == 200
        assert b'No products found' in response.data

    def test_table_choices(self, auth_cashier, app):
        app.config['TABLE_COUNT'] = 3
        response = auth_cashier.get('/cashier/')
        assert b'Table 3' in response.data
        assert b'Table 4' not in response.data


class TestCartOperations:

    def test_add_product(self, auth_cashier, products):
        response = auth_cashier.post('/cashier/add/p1', headers=XHR)
        data = response.get_json()
        assert data['success'] is True
        assert data['total'] == 15000
        auth_cashier.post('/cashier/add/p1', headers=XHR)
        data = auth_cashier.post('/cashier/add/p2', headers=XHR).get_json()
        assert data['count'] == 2
        assert data['total'] == 35000

    def test_add_unknown_product(self, auth_cashier, products):
        response = auth_cashier.post('/cashier/add/nope', headers=XHR)
        assert response.status_code == 404

    def test_add_redirect_keeps_filters(self, auth_cashier, products):
        response = auth_cashier.post('/cashier/add/p1', data={'category': 'Food'})
        assert response.status_code == 302
        assert 'category=Food' in response.headers['Location']

    def test_quantity_changes(self, auth_cashier, products):
        auth_cashier.post('/cashier/add/p1', headers=XHR)
        data = auth_cashier.post('/cashier/increase/p1', headers=XHR).get_json()
        assert data['items'][0]['qty'] == 2
        data = auth_cashier.post('/cashier/set-qty/p1', data={'qty': '5'}, headers=XHR).get_json()
        assert data['items'][0]['qty'] == 5
        data = auth_cashier.post('/cashier/set-qty/p1', data={'qty': '-1'}, headers=XHR).get_json()
        assert data['items'][0]['qty'] == 5
        data = auth_cashier.post('/cashier/decrease/p1', headers=XHR).get_json()
        assert data['items'][0]['qty'] == 4

    def test_decrease_to_zero_removes(self, auth_cashier, products):
        auth_cashier.post('/cashier/add/p1', headers=XHR)
        data = auth_cashier.post('/cashier/decrease/p1', headers=XHR).get_json()
        assert data['items'] == []

    def test_remove_and_clear(self, auth_cashier, products):
        auth_cashier.post('/cashier/add/p1', headers=XHR)
        auth_cashier.post('/cashier/add/p2', headers=XHR)
        data = auth_cashier.post('/cashier/remove/p1', headers=XHR).get_json()
        assert [i['id'] for i in data['items']] == ['p2']
        data = auth_cashier.post('/cashier/clear', headers=XHR).get_json()
        assert data['count'] == 0


class TestSaveOrder:

    def test_save_new_order(self, auth_cashier, products, backend):
        auth_cashier.post('/cashier/add/p1', headers=XHR)
        auth_cashier.post('/cashier/add/p1', headers=XHR)
        with auth_cashier:
            response = auth_cashier.post('/cashier/save', data={
                'customer_name': 'Budi', 'table_number': '4', 'order_type': 'dine_in',
            })
            assert response.status_code == 302
            assert response.headers['Location'].endswith('/orders/')
            assert session['cart']['items'] == []
        backend.create_order.assert_called_once_with('access-kasir', {
            'customer_name': 'Budi',
            'table_number': '4',
            'type_order': 'dine_in',
            'items': [{'product_id': 'p1', 'qty': 2}],
        })

    def test_empty_cart_not_saved(self, auth_cashier, backend):
        response = auth_cashier.post('/cashier/save', data={'table_number': '1'}, headers=XHR)
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Cart is empty'
        backend.create_order.assert_not_called()

    def test_dine_in_needs_table(self, auth_cashier, products, backend):
        auth_cashier.post('/cashier/add/p1', headers=XHR)
        response = auth_cashier.post('/cashier/save', data={'order_type': 'dine_in'}, headers=XHR)
        assert response.status_code == 400
        backend.create_order.assert_not_called()

    def test_takeaway_without_table(self, auth_cashier, products, backend):
        auth_cashier.post('/cashier/add/p2', headers=XHR)
        response = auth_cashier.post('/cashier/save', data={'order_type': 'takeaway'}, headers=XHR)
        assert response.get_json()['success'] is True
        payload = backend.create_order.call_args[0][1]
        assert payload['table_number'] is None
        assert payload['customer_name'] == '-'

    def test_backend_failure_keeps_cart(self, auth_cashier, products, backend):
        backend.create_order.side_effect = BackendError('x', 400, payload={'message': 'Product inactive'})
        auth_cashier.post('/cashier/add/p1', headers=XHR)
        with auth_cashier:
            response = auth_cashier.post('/cashier/save', data={'table_number': '2'}, headers=XHR)
            assert response.status_code == 502
            assert response.get_json()['error'] == 'Product inactive'
            assert len(session['cart']['items']) == 1


class TestEditDraft:

    def test_edit_loads_draft_into_cart(self, auth_cashier, backend):
        backend.get_order.return_value = make_order()
        with auth_cashier:
            response = auth_cashier.get(f'/cashier/?edit={ORDER_ID}')
            assert response.status_code == 200
            assert b'Update Order' in response.data
            assert session['cart']['editing_order_id'] == ORDER_ID

    def test_paid_order_cannot_be_edited(self, auth_cashier, backend):
        backend.get_order.return_value = make_order(status='PAID')
        response = auth_cashier.get(f'/cashier/?edit={ORDER_ID}')
        assert b'Only draft orders can be edited.' in response.data

    def test_save_updates_existing_draft(self, auth_cashier, backend):
        backend.get_order.return_value = make_order()
        auth_cashier.get(f'/cashier/?edit={ORDER_ID}')
        response = auth_cashier.post('/cashier/save', data={'table_number': '5', 'order_type': 'dine_in'})
        assert response.headers['Location'].endswith(f'/orders/{ORDER_ID}')
        backend.update_order.assert_called_once()
        assert backend.update_order.call_args[0][1] == ORDER_ID
        backend.create_order.assert_not_called()

    def test_cancel_edit(self, auth_cashier, backend):
        backend.get_order.return_value = make_order()
        auth_cashier.get(f'/cashier/?edit={ORDER_ID}')
        with auth_cashier:
            response = auth_cashier.post('/cashier/cancel-edit')
            assert response.headers['Location'].endswith('/orders/')
            assert session['cart']['editing_order_id'] is None


class TestDraftCount:

    def test_counts_drafts(self, auth_cashier, backend):
        backend.list_orders.return_value = ([make_order(), make_order(status='PAID'), make_order()], 3)
        response = auth_cashier.get('/cashier/draft-count')
        assert response.get_json() == {'count': 2}

    def test_failure_counts_zero(self, auth_cashier, backend):
        backend.list_orders.side_effect = BackendError('boom')
        assert auth_cashier.get('/cashier/draft-count').get_json() == {'count': 0}
