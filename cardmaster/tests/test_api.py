# -*- coding: utf-8 -*-
"""
Tests de las rutas HTTP (sesión, CSRF, permisos y exportación).
"""
from datetime import date

from cardmaster.services import LOGIN_ERROR
from cardmaster.utils import get_current_date


def _headers(token):
    return {'X-CSRF-Token': token}


def _new_tx(client, token, **fields):
    body = {'customerName': 'Vũ Minh Hải', 'bank': 'TPBank', 'cardType': 'Visa Infinite',
            'lastFourDigits': '5678', 'amount': 10_000_000}
    body.update(fields)
    return client.post('/api/transactions', json=body, headers=_headers(token))


def test_session_without_login(client):
    data = client.get('/api/session').get_json()
    assert data['user'] is None
    assert data['site'] == {'siteName': 'CardMaster', 'siteLogo': ''}
    assert len(data['csrf_token']) == 32


def test_post_without_csrf_is_rejected(client):
    r = client.post('/login', json={'username': 'admin', 'password': 'admin'})
    assert r.status_code == 403


def test_login_success_and_failure(client):
    token = client.get('/api/session').get_json()['csrf_token']

    r = client.post('/login', json={'username': 'admin', 'password': 'nope'},
                    headers=_headers(token))
    assert r.status_code == 401
    assert r.get_json()['error'] == LOGIN_ERROR

    r = client.post('/login', json={'username': 'Admin', 'password': 'admin',
                                    'csrf_token': token})
    assert r.status_code == 200
    user = r.get_json()['user']
    assert user['role'] == 'ADMIN'
    assert 'password' not in user


def test_api_requires_login(client):
    assert client.get('/api/transactions').status_code == 401
    assert client.get('/api/dashboard').status_code == 401


def test_create_transaction_computes_fees(client, login):
    token = login('user', 'user')

    r = _new_tx(client, token, customerFeePercent=2.5)

    assert r.status_code == 201
    data = r.get_json()
    tx = data['transaction']
    assert tx['sale'] == 'Nhân viên A'
    assert tx['posCost'] == 150_000
    assert tx['profit'] == 100_000
    assert data['customer']['lastFourDigits'] == '5678'

    listing = client.get('/api/transactions').get_json()
    assert listing['total'] == 1
    assert listing['items'][0]['id'] == tx['id']


def test_user_cannot_delete_or_edit_transaction(client, login):
    token = login('user', 'user')
    tx_id = _new_tx(client, token).get_json()['transaction']['id']

    assert client.delete(f'/api/transactions/{tx_id}', headers=_headers(token)).status_code == 403
    r = client.put(f'/api/transactions/{tx_id}', json={'amount': 1}, headers=_headers(token))
    assert r.status_code == 403
    assert client.get('/api/transactions').get_json()['total'] == 1


def test_update_missing_transaction_is_404(client, login):
    token = login('admin', 'admin')
    r = client.put('/api/transactions/NOPE0000', json={'amount': 1}, headers=_headers(token))
    assert r.status_code == 404


def test_export_csv_response(client, login):
    token = login('admin', 'admin')
    _new_tx(client, token)

    today = date.today().isoformat()
    r = client.get(f'/api/transactions/export?from={today}&to={today}')

    assert r.status_code == 200
    assert r.mimetype == 'text/csv'
    assert r.headers['Content-Disposition'] == \
        f'attachment;filename=Bao_cao_giao_dich_{today}_den_{today}.csv'
    text = r.data.decode('utf-8')
    assert text.startswith('\ufeffID Giao dịch,')

    r = client.get('/api/transactions/export?from=2024-01-01&to=2024-01-31')
    assert r.status_code == 400


def test_task_creation_notifies_assignee(client, login):
    token = login('admin', 'admin')
    r = client.post('/api/tasks', json={'title': 'Đối soát POS', 'assignedTo': ['user']},
                    headers=_headers(token))
    assert r.status_code == 201
    task_id = r.get_json()['task']['id']

    client.post('/logout', headers=_headers(token))
    token = login('user', 'user')

    data = client.get('/api/notifications').get_json()
    assert data['unread'] == 1
    (notification,) = data['items']
    assert notification['targetUser'] == 'user'

    r = client.post(f"/api/notifications/{notification['id']}/read", headers=_headers(token))
    assert r.get_json()['taskId'] == task_id
    assert client.get('/api/notifications').get_json()['unread'] == 0


def test_user_cannot_create_task(client, login):
    token = login('user', 'user')
    r = client.post('/api/tasks', json={'title': 'x'}, headers=_headers(token))
    assert r.status_code == 403


def test_settings_are_admin_only(client, login):
    token = login('manager', 'manager')
    r = client.post('/api/settings', json={'siteName': 'Khác'}, headers=_headers(token))
    assert r.status_code == 403
    assert client.get('/api/settings').get_json()['siteName'] == 'CardMaster'


def test_user_cannot_update_customer(client, login):
    token = login('user', 'user')
    r = client.post('/api/customers', json={'name': 'Lý Thị Hoa', 'bank': 'SHB',
                                            'cardType': 'Visa', 'lastFourDigits': '1111'},
                    headers=_headers(token))
    assert r.status_code == 201
    customer_id = r.get_json()['customer']['id']

    r = client.put(f'/api/customers/{customer_id}', json={'isHoldingCard': True},
                   headers=_headers(token))
    assert r.status_code == 403


def test_dashboard_for_user(client, login):
    token = login('user', 'user')
    _new_tx(client, token)

    data = client.get('/api/dashboard').get_json()
    assert data['stats']['count'] == 1
    assert data['summary'] == []
    assert data['months'] == [date.today().strftime('%m/%Y')]


def test_formatted_amounts_are_accepted(client, login):
    token = login('manager', 'manager')

    tx = _new_tx(client, token, amount='20.000.000 đ').get_json()['transaction']
    assert tx['amount'] == 20_000_000
    assert tx['sale'] == 'Quản lý B'

    preview = client.get('/api/fees/preview?amount=10.000.000&posFeePercent=1.5'
                         '&customerFeePercent=2').get_json()
    assert preview['profit'] == 50_000


def test_server_sets_sale_and_date_on_create(client, login):
    token = login('user', 'user')

    r = _new_tx(client, token, sale='Administrator', timestamp='2025-03-01')

    assert r.status_code == 201
    tx = r.get_json()['transaction']
    assert tx['sale'] == 'Nhân viên A'
    assert tx['timestamp'] == get_current_date()
    assert client.get('/api/transactions').get_json()['total'] == 1

    client.post('/logout', headers=_headers(token))
    login('admin', 'admin')
    listing = client.get('/api/transactions')
    assert listing.status_code == 200
    assert listing.get_json()['total'] == 1
    assert client.get('/api/dashboard').status_code == 200


def test_edit_keeps_sale_and_rejects_bad_date(client, login):
    token = login('user', 'user')
    tx_id = _new_tx(client, token).get_json()['transaction']['id']
    client.post('/logout', headers=_headers(token))
    token = login('manager', 'manager')

    r = client.put(f'/api/transactions/{tx_id}', json={'timestamp': '2025-03-01'},
                   headers=_headers(token))
    assert r.status_code == 400

    r = client.put(f'/api/transactions/{tx_id}', json={'sale': 'Quản lý B', 'amount': 20_000_000},
                   headers=_headers(token))
    assert r.status_code == 200
    tx = r.get_json()['transaction']
    assert tx['sale'] == 'Nhân viên A'
    assert tx['amount'] == 20_000_000
    assert tx['timestamp'] == get_current_date()


def test_user_cannot_overwrite_customer_through_create(client, login):
    token = login('user', 'user')
    body = {'name': 'Lý Thị Hoa', 'bank': 'SHB', 'cardType': 'Visa', 'lastFourDigits': '1111'}
    customer_id = client.post('/api/customers', json=body,
                              headers=_headers(token)).get_json()['customer']['id']

    r = client.post('/api/customers', json={**body, 'id': customer_id, 'name': 'Đổi tên',
                                            'isHoldingCard': True},
                    headers=_headers(token))

    assert r.status_code == 403
    (customer,) = client.get('/api/customers').get_json()['items']
    assert customer['name'] == 'Lý Thị Hoa'
    assert customer['isHoldingCard'] is False


def test_form_suggestions_endpoint(client, login):
    assert client.get('/api/suggestions?field=pos').status_code == 401
    login('user', 'user')

    data = client.get('/api/suggestions?field=pos&q=vib').get_json()
    assert data['items'] == ['POS VIB - Cầu Giấy']
    assert len(client.get('/api/suggestions?field=banks').get_json()['items']) == 8
    assert client.get('/api/suggestions?field=password').status_code == 400
