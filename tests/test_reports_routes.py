"""
Tests for Sales Report and Public Receipt Routes
"""

import pytest
from datetime import datetime

from pos_web.services.backend import BackendError, BackendUnavailable

from conftest import ORDER_ID, make_order

MOBILE_UA = 'Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 Mobile Safari/537.36'


@pytest.fixture
def report_data(backend):
    now = datetime.now().isoformat()
    backend.report_orders.return_value = [
        make_order(id='a1', status='PAID', payment_method='CASH', total=20000, created_at=now, customer_name='Budi'),
        make_order(id='b2', status='PAID', payment_method='QRIS', total=10000, created_at=now, customer_name='Sari'),
        make_order(id='c3', status='DRAFT', total=99000, created_at=now),
    ]
    backend.top_products.return_value = [
        {'name': 'Soto Ayam', 'qty': 8, 'revenue': 120000},
        {'name': 'Es Teh', 'qty': 4, 'revenue': 20000},
    ]
    return backend


class TestReportPage:

    def test_summary(self, auth_cashier, report_data):
        response = auth_cashier.get('/report/')
        assert response.status_code == 200
        assert b'Rp 30.000' in response.data
        assert b'Last 7 Days' in response.data
        assert b'Soto Ayam' in response.data
        report_data.report_orders.assert_called_once_with('access-kasir', period='all')

    def test_cashier_has_no_export_buttons(self, auth_cashier, report_data):
        response = auth_cashier.get('/report/')
        assert b'/report/export' not in response.data

    def test_admin_has_export_buttons(self, auth_admin, report_data):
        response = auth_admin.get('/report/')
        assert b'/report/export' in response.data

    def test_method_filter(self, auth_cashier, report_data):
        response = auth_cashier.get('/report/?period=all&method=QRIS')
        assert b'Transactions (1)' in response.data

    def test_top_products_custom_range(self, auth_cashier, report_data):
        auth_cashier.get('/report/?period=custom&start=2026-10-01&end=2026-10-07')
        report_data.top_products.assert_called_once_with(
            'access-kasir', start='2026-10-01', end='2026-10-07'
        )

    def test_top_products_period(self, auth_cashier, report_data):
        auth_cashier.get('/report/?period=30days')
        report_data.top_products.assert_called_once_with('access-kasir', period='30days')

    def test_top_products_sent_as_strings(self, auth_cashier, report_data):
        report_data.top_products.return_value = [
            {'name': 'Soto Ayam', 'qty': '12', 'revenue': '180000'},
            {'name': 'Es Teh', 'qty': '4', 'revenue': '20000'},
        ]
        response = auth_cashier.get('/report/')
        assert response.status_code == 200
        assert b'Soto Ayam' in response.data
        data = auth_cashier.get('/report/top-products?mode=revenue').get_json()
        assert data['data'][0]['width'] == 100

    @pytest.mark.parametrize('end', ['9000-12-31', '9999-12-31'])
    def test_huge_custom_range_is_bounded(self, auth_cashier, report_data, end):
        response = auth_cashier.get(f'/report/?period=custom&start=1000-01-01&end={end}')
        assert response.status_code == 200
        assert len(response.data) < 2_000_000

    def test_no_paid_orders(self, auth_cashier, backend):
        response = auth_cashier.get('/report/')
        assert response.status_code == 200
        assert b'No paid orders yet.' in response.data

    def test_backend_failure_renders_empty_report(self, auth_cashier, backend):
        backend.report_orders.side_effect = BackendError('boom', 500)
        backend.top_products.side_effect = BackendError('boom', 500)
        response = auth_cashier.get('/report/')
        assert response.status_code == 200
        assert b'No transactions' in response.data


@pytest.mark.api
class TestReportJson:

    def test_top_products_json(self, auth_cashier, report_data):
        data = auth_cashier.get('/report/top-products?mode=revenue&period=today').get_json()
        assert data['success'] is True
        assert data['data'][0]['width'] == 100
        assert data['data'][1]['value'] == 20000

    def test_order_details(self, auth_cashier, backend):
        backend.order_details.return_value = [
            {'product_name': 'Soto Ayam', 'qty': 2},
            {'product_name': 'Es Teh', 'qty': 1},
        ]
        data = auth_cashier.get(f'/report/orders/{ORDER_ID}/details').get_json()
        assert data['products'] == 'Soto Ayam, Es Teh'

    def test_order_details_failure(self, auth_cashier, backend):
        backend.order_details.side_effect = BackendError('boom', 500)
        response = auth_cashier.get(f'/report/orders/{ORDER_ID}/details')
        assert response.status_code == 502


class TestExport:

    def test_excel(self, auth_admin, report_data):
        response = auth_admin.get('/report/export?period=all')
        assert response.status_code == 200
        assert 'spreadsheetml' in response.mimetype
        assert 'sales_report_all_' in response.headers['Content-Disposition']

    def test_csv_contains_only_paid(self, auth_admin, report_data):
        response = auth_admin.get('/report/export?period=all&format=csv')
        text = response.data.decode('utf-8-sig')
        assert 'a1' in text
        assert 'b2' in text
        assert 'c3' not in text


class TestReceipt:

    def test_desktop_receipt_auto_prints(self, client, backend):
        backend.get_public_order.return_value = {'success': True, 'data': make_order(status='PAID', payment_method='CASH')}
        response = client.get(f'/print/receipt/{ORDER_ID}')
        assert response.status_code == 200
        assert b'window.print()' in response.data
        assert b'Thank you!' in response.data
        assert b'bluetoothprint' not in response.data

    def test_mobile_receipt_offers_bluetooth(self, client, backend):
        backend.get_public_order.return_value = {'success': True, 'data': make_order(status='PAID')}
        response = client.get(f'/print/receipt/{ORDER_ID}', headers={'User-Agent': MOBILE_UA})
        assert b'my.bluetoothprint.scheme://http://backend.test/api/print/receipt/' in response.data
        assert b'window.print()' not in response.data

    def test_invalid_id(self, client, backend):
        response = client.get('/print/receipt/undefined')
        assert response.status_code == 400
        assert b'Invalid order ID' in response.data
        backend.get_public_order.assert_not_called()

    def test_not_found(self, client, backend):
        backend.get_public_order.return_value = {'success': False}
        response = client.get(f'/print/receipt/{ORDER_ID}')
        assert response.status_code == 404
        assert b'Receipt not found' in response.data

    def test_backend_down(self, client, backend):
        backend.get_public_order.side_effect = BackendUnavailable()
        response = client.get(f'/print/receipt/{ORDER_ID}')
        assert response.status_code == 502

    def test_pdf(self, client, backend):
        backend.get_public_order.return_value = {'success': True, 'data': make_order(status='PAID')}
        response = client.get(f'/print/receipt/{ORDER_ID}/pdf')
        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data.startswith(b'%PDF-')
