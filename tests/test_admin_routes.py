"""
Tests for Admin Routes
Dashboard, user management, products and categories.
"""

import pytest

from pos_web.services.backend import BackendError

from conftest import ADMIN_ID, OTHER_USER_ID, make_order, make_product


def staff(user_id=OTHER_USER_ID, username='sari', role='cashier', active=True):
    return {'id': user_id, 'username': username, 'role': role, 'active': active}


class TestDashboard:

    def test_summary(self, auth_admin, backend):
        backend.list_users.return_value = [staff(), staff(ADMIN_ID, 'admin', 'admin')]
        backend.list_admin_products.return_value = [
            make_product(),
            make_product(id='p2', category='Drink'),
            make_product(id='p3', category='Dessert', active=False),
        ]
        backend.list_orders.return_value = ([
            make_order(status='PAID', total=20000),
            make_order(status='DRAFT', total=50000),
        ], 2)
        response = auth_admin.get('/admin/')
        assert response.status_code == 200
        assert b'Rp 20.000' in response.data
        assert b'Rp 50.000' not in response.data

    def test_one_source_failing_keeps_others(self, auth_admin, backend):
        backend.list_users.side_effect = BackendError('boom', 500)
        backend.list_orders.return_value = ([make_order(status='PAID', total=12000)], 1)
        response = auth_admin.get('/admin/')
        assert response.status_code == 200
        assert b'Rp 12.000' in response.data
        assert b'Failed to load dashboard data' not in response.data

    def test_all_sources_failing(self, auth_admin, backend):
        backend.list_users.side_effect = BackendError('boom', 500)
        backend.list_admin_products.side_effect = BackendError('boom', 500)
        backend.list_orders.side_effect = BackendError('boom', 500)
        response = auth_admin.get('/admin/')
        assert response.status_code == 200
        assert b'Failed to load dashboard data' in response.data


class TestUserList:

    def test_malformed_records_are_skipped(self, auth_admin, backend):
        backend.list_users.return_value = [
            staff(),
            {'id': 'not-a-uuid', 'username': 'ghost', 'role': 'cashier', 'active': True},
            {'id': OTHER_USER_ID, 'username': 'boss', 'role': 'owner', 'active': True},
            {'id': OTHER_USER_ID, 'username': 'lazy', 'role': 'cashier', 'active': 'yes'},
        ]
        response = auth_admin.get('/admin/users')
        assert response.status_code == 200
        assert b'sari' in response.data
        assert b'ghost' not in response.data
        assert b'boss' not in response.data
        assert b'lazy' not in response.data

    def test_empty(self, auth_admin, backend):
        response = auth_admin.get('/admin/users')
        assert b'No users' in response.data


class TestAddUser:

    def test_add(self, auth_admin, backend):
        response = auth_admin.post('/admin/users', data={
            'username': ' sari ', 'password': 'rahasia', 'role': 'admin',
        }, follow_redirects=True)
        assert b'User added successfully!' in response.data
        backend.create_user.assert_called_once_with('access-admin', 'sari', 'rahasia', 'admin')

    def test_role_defaults_to_cashier(self, auth_admin, backend):
        auth_admin.post('/admin/users', data={'username': 'sari', 'password': 'rahasia'})
        assert backend.create_user.call_args[0][3] == 'cashier'

    @pytest.mark.parametrize('data,message', [
        ({'username': '', 'password': 'rahasia'}, b'Username and password are required'),
        ({'username': 'sari', 'password': '   '}, b'Username and password are required'),
        ({'username': 'sari', 'password': '12345'}, b'Password must be at least 6 characters'),
        ({'username': 'sari', 'password': 'rahasia', 'role': 'owner'}, b'Invalid role'),
    ])
    def test_validation(self, auth_admin, backend, data, message):
        response = auth_admin.post('/admin/users', data=data, follow_redirects=True)
        assert message in response.data
        backend.create_user.assert_not_called()

    def test_backend_message_flashed(self, auth_admin, backend):
        backend.create_user.side_effect = BackendError('x', 409, payload={'message': 'Username already exists'})
        response = auth_admin.post('/admin/users', data={
            'username': 'sari', 'password': 'rahasia',
        }, follow_redirects=True)
        assert b'Username already exists' in response.data


class TestEditUser:

    def test_edit(self, auth_admin, backend):
        auth_admin.post(f'/admin/users/{OTHER_USER_ID}/edit', data={
            'username': 'sari2', 'role': 'cashier', 'active': '1',
        })
        backend.update_user.assert_called_once_with('access-admin', OTHER_USER_ID, 'sari2', 'cashier', True)

    def test_username_required(self, auth_admin, backend):
        response = auth_admin.post(f'/admin/users/{OTHER_USER_ID}/edit', data={
            'username': ' ', 'role': 'cashier',
        }, follow_redirects=True)
        assert b'Username is required' in response.data
        backend.update_user.assert_not_called()

    def test_invalid_id(self, auth_admin, backend):
        response = auth_admin.post('/admin/users/42/edit', data={
            'username': 'sari', 'role': 'cashier',
        }, follow_redirects=True)
        assert b'Invalid user ID' in response.data
        backend.update_user.assert_not_called()

    def test_cannot_deactivate_self(self, auth_admin, backend):
        response = auth_admin.post(f'/admin/users/{ADMIN_ID}/edit', data={
            'username': 'admin', 'role': 'admin',
        }, follow_redirects=True)
        assert b'You cannot deactivate your own account' in response.data
        backend.update_user.assert_not_called()


class TestToggleUser:

    def test_deactivate(self, auth_admin, backend):
        response = auth_admin.post(f'/admin/users/{OTHER_USER_ID}/toggle', data={
            'username': 'sari', 'role': 'cashier', 'active': 'true',
        }, follow_redirects=True)
        assert b'User deactivated successfully!' in response.data
        backend.update_user.assert_called_once_with('access-admin', OTHER_USER_ID, 'sari', 'cashier', False)

    def test_activate(self, auth_admin, backend):
        auth_admin.post(f'/admin/users/{OTHER_USER_ID}/toggle', data={
            'username': 'sari', 'role': 'cashier',
        })
        assert backend.update_user.call_args[0][4] is True

    def test_cannot_toggle_self(self, auth_admin, backend):
        response = auth_admin.post(f'/admin/users/{ADMIN_ID}/toggle', data={
            'username': 'admin', 'role': 'admin', 'active': 'true',
        }, follow_redirects=True)
        assert b'You cannot deactivate your own account' in response.data
        backend.update_user.assert_not_called()


class TestResetPassword:

    def test_reset(self, auth_admin, backend):
        response = auth_admin.post(f'/admin/users/{OTHER_USER_ID}/password', data={
            'new_password': 'baru123', 'confirm_password': 'baru123',
        }, follow_redirects=True)
        assert b'Password reset successfully!' in response.data
        backend.reset_password.assert_called_once_with('access-admin', OTHER_USER_ID, 'baru123')

    def test_too_short(self, auth_admin, backend):
        response = auth_admin.post(f'/admin/users/{OTHER_USER_ID}/password', data={
            'new_password': 'abc', 'confirm_password': 'abc',
        }, follow_redirects=True)
        assert b'Password must be at least 6 characters' in response.data
        backend.reset_password.assert_not_called()

    def test_mismatch(self, auth_admin, backend):
        response = auth_admin.post(f'/admin/users/{OTHER_USER_ID}/password', data={
            'new_password': 'baru123', 'confirm_password': 'baru124',
        }, follow_redirects=True)
        assert b'Passwords do not match' in response.data
        backend.reset_password.assert_not_called()


class TestDeleteUser:

    def test_delete(self, auth_admin, backend):
        auth_admin.post(f'/admin/users/{OTHER_USER_ID}/delete')
        backend.delete_user.assert_called_once_with('access-admin', OTHER_USER_ID)

    def test_cannot_delete_self(self, auth_admin, backend):
        response = auth_admin.post(f'/admin/users/{ADMIN_ID}/delete', follow_redirects=True)
        assert b'You cannot delete your own account' in response.data
        backend.delete_user.assert_not_called()

    def test_invalid_id(self, auth_admin, backend):
        auth_admin.post('/admin/users/undefined/delete')
        backend.delete_user.assert_not_called()


@pytest.fixture
def catalog(backend):
    backend.list_admin_products.return_value = [
        make_product(),
        make_product(id='p2', name='Es Teh', price=5000, category='Drink', code=None),
        make_product(id='p3', name='Bakso', price=20000, category=None, code='BK'),
    ]
    backend.list_categories_with_color.return_value = [
        {'name': 'Food', 'color': '#FF0000'},
        {'name': 'Drink', 'color': 'not-a-color'},
    ]
    return backend


class TestProductList:

    def test_lists_products(self, auth_admin, catalog):
        response = auth_admin.get('/admin/products')
        assert response.status_code == 200
        assert b'Soto Ayam' in response.data
        assert b'3 products' in response.data

    def test_search_matches_category_and_code(self, auth_admin, catalog):
        response = auth_admin.get('/admin/products?search=drink')
        assert b'1 products' in response.data
        response = auth_admin.get('/admin/products?search=bk')
        assert b'1 products' in response.data

    def test_sort_by_price_desc(self, auth_admin, catalog):
        text = auth_admin.get('/admin/products?sort=price&dir=desc').data.decode()
        assert text.index('Bakso') < text.index('Soto Ayam') < text.index('Es Teh')

    def test_paginates(self, auth_admin, backend, app):
        app.config['ITEMS_PER_PAGE'] = 2
        backend.list_admin_products.return_value = [
            make_product(id=f'p{i}', name=f'Item {i:02d}') for i in range(5)
        ]
        response = auth_admin.get('/admin/products?sort=name&page=3')
        assert b'Item 04' in response.data
        assert b'Item 00' not in response.data
        assert b'3 / 3' in response.data

    def test_categories_tab(self, auth_admin, catalog):
        response = auth_admin.get('/admin/products?tab=categories')
        assert b'Drink' in response.data
        assert b'#6B7280' in response.data

    def test_backend_failure(self, auth_admin, backend):
        backend.list_admin_products.side_effect = BackendError('boom', 500)
        response = auth_admin.get('/admin/products')
        assert b'Failed to load products' in response.data
        assert b'No products found' in response.data


class TestProductWrites:

    def test_add_takes_color_from_category(self, auth_admin, catalog):
        auth_admin.post('/admin/products', data={
            'name': 'Nasi Goreng', 'price': '25000', 'category': 'Food', 'code': '', 'type': ' ',
        })
        catalog.create_product.assert_called_once_with('access-admin', {
            'name': 'Nasi Goreng',
            'price': 25000,
            'category': 'Food',
            'color': '#FF0000',
            'code': None,
            'type': None,
        })

    def test_add_without_category(self, auth_admin, catalog):
        auth_admin.post('/admin/products', data={'name': 'Kerupuk', 'price': '2000'})
        payload = catalog.create_product.call_args[0][1]
        assert payload['category'] is None
        assert payload['color'] is None

    @pytest.mark.parametrize('data,message', [
        ({'name': '', 'price': '1000'}, b'Product name and price are required'),
        ({'name': 'Kerupuk', 'price': ''}, b'Product name and price are required'),
        ({'name': 'Kerupuk', 'price': '-5'}, b'Price must be a positive number'),
        ({'name': 'Kerupuk', 'price': 'abc'}, b'Price must be a positive number'),
    ])
    def test_add_validation(self, auth_admin, catalog, data, message):
        response = auth_admin.post('/admin/products', data=data, follow_redirects=True)
        assert message in response.data
        catalog.create_product.assert_not_called()

    def test_edit_sends_id_and_active(self, auth_admin, catalog):
        auth_admin.post('/admin/products/p2/edit', data={
            'name': 'Es Teh Manis', 'price': '6000', 'category': 'Drink',
        })
        product_id = catalog.update_product.call_args[0][1]
        payload = catalog.update_product.call_args[0][2]
        assert product_id == 'p2'
        assert payload['id'] == 'p2'
        assert payload['active'] is False
        assert payload['color'] == '#6B7280'

    def test_redirect_keeps_table_state(self, auth_admin, catalog):
        response = auth_admin.post('/admin/products/p1/delete', data={
            'search': 'soto', 'sort': 'price', 'dir': 'desc', 'page': '2',
        })
        location = response.headers['Location']
        assert 'search=soto' in location
        assert 'sort=price' in location
        assert 'page=2' in location
        catalog.delete_product.assert_called_once_with('access-admin', 'p1')

    def test_delete_failure_flashes(self, auth_admin, catalog):
        catalog.delete_product.side_effect = BackendError('boom', 500)
        response = auth_admin.post('/admin/products/p1/delete', follow_redirects=True)
        assert b'Failed to delete product' in response.data


class TestCategories:

    def test_add(self, auth_admin, backend):
        response = auth_admin.post('/admin/categories', data={'name': 'Snack', 'color': '#123ABC'})
        assert 'tab=categories' in response.headers['Location']
        backend.create_category.assert_called_once_with('access-admin', 'Snack', '#123ABC')

    def test_add_bad_color_falls_back(self, auth_admin, backend):
        auth_admin.post('/admin/categories', data={'name': 'Snack', 'color': 'red;}'})
        assert backend.create_category.call_args[0][2] == '#6B7280'

    def test_name_required(self, auth_admin, backend):
        response = auth_admin.post('/admin/categories', data={'name': ''}, follow_redirects=True)
        assert b'Category name is required' in response.data
        backend.create_category.assert_not_called()

    def test_delete(self, auth_admin, backend):
        auth_admin.post('/admin/categories/delete', data={'name': 'Drink'})
        backend.delete_category.assert_called_once_with('access-admin', 'Drink')


@pytest.mark.security
class TestCashierDenied:

    @pytest.mark.parametrize('url', [
        f'/admin/users/{OTHER_USER_ID}/delete',
        '/admin/products/p1/delete',
        '/admin/categories',
    ])
    def test_writes_refused(self, auth_cashier, backend, url):
        response = auth_cashier.post(url, data={'name': 'x'})
        assert response.status_code == 302
        assert '/auth/login' in response.headers['Location']
        backend.delete_user.assert_not_called()
        backend.delete_product.assert_not_called()
        backend.create_category.assert_not_called()
