# -*- coding: utf-8 -*-
"""
Fixtures compartidas: estado en memoria, usuarios semilla y cliente Flask.
"""
import os

# Sin archivos de log durante los tests
os.environ.setdefault('CARDMASTER_PROFILING', '0')

import pytest

from cardmaster.app_container import AppContainer
from cardmaster.repositories import MemoryStore, StateRepository
from cardmaster.seed import build_default_state
from cardmaster.services import (
    CustomerService,
    NotificationService,
    StateService,
    TaskService,
    TransactionService,
    UserService,
)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def state_service(store):
    # Sin transacciones de ejemplo para que los conteos sean exactos
    return StateService(StateRepository(store), build_default_state(0))


@pytest.fixture
def admin(state_service):
    return state_service.get('users', '1')


@pytest.fixture
def staff(state_service):
    """Usuario con rol USER (username 'user', nombre 'Nhân viên A')."""
    return state_service.get('users', '2')


@pytest.fixture
def manager(state_service):
    return state_service.get('users', '3')


@pytest.fixture
def customer_service(state_service):
    return CustomerService(state_service)


@pytest.fixture
def transaction_service(state_service, customer_service):
    return TransactionService(state_service, customer_service)


@pytest.fixture
def notification_service(state_service):
    return NotificationService(state_service)


@pytest.fixture
def task_service(state_service, notification_service):
    return TaskService(state_service, notification_service)


@pytest.fixture
def user_service(state_service):
    return UserService(state_service)


# ==============================================================================
# FLASK
# ==============================================================================

@pytest.fixture
def container():
    AppContainer.reset_instance()
    c = AppContainer(store=MemoryStore(), sample_count=0)
    yield c
    AppContainer.reset_instance()


@pytest.fixture
def client(container):
    from cardmaster.main import app
    app.config['TESTING'] = True
    with app.test_client() as c:
        yield c


@pytest.fixture
def login(client):
    """
    Inicia sesión y retorna el token CSRF de la sesión.

    Uso:
        token = login('admin', 'admin')
        client.post('/api/...', json={...}, headers={'X-CSRF-Token': token})
    """
    def _login(username, password):
        token = client.get('/api/session').get_json()['csrf_token']
        r = client.post('/login', json={'username': username, 'password': password},
                        headers={'X-CSRF-Token': token})
        assert r.status_code == 200, r.get_json()
        return token
    return _login
