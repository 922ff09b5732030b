from dataclasses import replace

from cardmaster.models import Transaction, TransactionStatus, TransactionType
from cardmaster.services import TransactionService
from cardmaster.services.transaction_service import sort_newest_first
from cardmaster.utils import get_current_date


def _tx(**overrides):
    data = dict(customer_name='Nguyen Van A', bank='Techcombank', card_type='Visa',
                last_four_digits='1234', amount=10_000_000, timestamp='10/03/2025',
                sale='Administrator')
    data.update(overrides)
    return Transaction(**data)


def test_create_applies_fees_and_inserts_first(transaction_service, state_service, staff):
    transaction_service.create(staff, _tx(customer_name='Primero'))
    result = transaction_service.create(staff, _tx(customer_name='Segundo'))

    tx = result['transaction']
    assert (tx.pos_cost, tx.customer_charge, tx.profit) == (150_000, 200_000, 50_000)
    assert state_service.state.transactions[0].customer_name == 'Segundo'


def test_new_transaction_defaults(staff):
    tx = TransactionService.new_transaction(staff, amount=20_000_000)
    assert tx.pos_fee_percent == 1.5
    assert tx.customer_fee_percent == 2.0
    assert tx.type == TransactionType.WITHDRAW
    assert tx.status == TransactionStatus.UNPAID
    assert tx.timestamp == get_current_date()
    assert tx.sale == 'Nhân viên A'
    assert tx.profit == 100_000


def test_preview_fees(transaction_service):
    assert transaction_service.preview_fees(10_000_000, 1.5, 1.0) == {
        'posCost': 150_000, 'customerCharge': 100_000, 'profit': -50_000
    }


def test_user_delete_is_noop(transaction_service, state_service, admin, manager, staff):
    tx = transaction_service.create(admin, _tx())['transaction']

    for actor in (staff, manager):
        result = transaction_service.delete(actor, tx.id)
        assert result['forbidden'] is True
        assert transaction_service.get_transaction(tx.id) is not None

    assert transaction_service.delete(admin, tx.id)['ok'] is True
    assert state_service.state.transactions == []


def test_user_cannot_update(transaction_service, admin, staff):
    tx = transaction_service.create(admin, _tx())['transaction']

    result = transaction_service.update(staff, replace(tx, amount=1))

    assert result['forbidden'] is True
    assert transaction_service.get_transaction(tx.id).amount == 10_000_000


def test_manager_update_recomputes_fees(transaction_service, admin, manager):
    tx = transaction_service.create(admin, _tx())['transaction']

    result = transaction_service.update(manager, replace(tx, amount=20_000_000, profit=0))

    saved = transaction_service.get_transaction(tx.id)
    assert result['ok'] is True
    assert saved.profit == 100_000
    assert saved.pos_cost == 300_000


def test_update_unknown_id(transaction_service, admin):
    result = transaction_service.update(admin, _tx(id='NOPE0000'))
    assert result == {'ok': False, 'error': 'Không tìm thấy giao dịch'}


def test_update_syncs_customer_with_new_card(transaction_service, state_service, admin):
    tx = transaction_service.create(admin, _tx())['transaction']
    transaction_service.update(admin, replace(tx, last_four_digits='9876'))
    assert {c.last_four_digits for c in state_service.state.customers} == {'1234', '9876'}


def test_user_sees_only_own_transactions(transaction_service, admin, staff, manager):
    transaction_service.create(admin, _tx(sale='Administrator'))
    transaction_service.create(staff, _tx(sale='Nhân viên A'))

    assert [t.sale for t in transaction_service.visible_to(staff)] == ['Nhân viên A']
    assert len(transaction_service.visible_to(manager)) == 2
    assert transaction_service.list_transactions(staff)['total'] == 1


def test_list_search_sort_and_pagination(transaction_service, admin):
    for day in range(1, 13):
        transaction_service.create(admin, _tx(timestamp=f'{day:02d}/01/2025'))
    transaction_service.create(admin, _tx(customer_name='Đặng Thu Thảo', bank='BIDV',
                                           timestamp='15/12/2024'))

    first = transaction_service.list_transactions(admin, page_size=10)
    assert first['total'] == 13
    assert first['pages'] == 2
    assert len(first['items']) == 10
    assert first['items'][0].timestamp == '12/01/2025'

    last = transaction_service.list_transactions(admin, page=99, page_size=10)
    assert last['page'] == 2
    assert [t.timestamp for t in last['items']][-1] == '15/12/2024'

    assert transaction_service.list_transactions(admin)['pages'] == 1

    found = transaction_service.list_transactions(admin, search='bidv')
    assert [t.customer_name for t in found['items']] == ['Đặng Thu Thảo']
    assert transaction_service.list_transactions(admin, search='zzz')['pages'] == 1


def test_sort_newest_first_is_stable():
    a = _tx(customer_name='a', timestamp='01/02/2025')
    b = _tx(customer_name='b', timestamp='01/02/2025')
    c = _tx(customer_name='c', timestamp='31/01/2025')
    assert [t.customer_name for t in sort_newest_first([c, a, b])] == ['a', 'b', 'c']


def test_malformed_date_is_rejected(transaction_service, state_service, admin, manager):
    for bad in ('2025-03-01', '', '31/02/2025', 'ayer'):
        result = transaction_service.create(admin, _tx(timestamp=bad))
        assert result == {'ok': False, 'error': 'Ngày giao dịch không hợp lệ (DD/MM/YYYY)'}
    assert state_service.state.transactions == []

    tx = transaction_service.create(admin, _tx())['transaction']
    result = transaction_service.update(manager, replace(tx, timestamp='2025-03-01'))

    assert result['ok'] is False
    assert transaction_service.get_transaction(tx.id).timestamp == '10/03/2025'
    assert transaction_service.list_transactions(admin)['total'] == 1
