import pytest

from cardmaster.models import Transaction, TransactionStatus
from cardmaster.services import StatsService


def _tx(timestamp, sale, amount, profit, paid=True):
    return Transaction(
        customer_name='X', bank='ACB', card_type='Visa', last_four_digits='1',
        amount=amount, profit=profit, timestamp=timestamp, sale=sale,
        status=TransactionStatus.PAID if paid else TransactionStatus.UNPAID
    )


@pytest.fixture
def transactions():
    return [
        _tx('20/03/2025', 'Administrator', 10_000_000, 50_000),
        _tx('05/03/2025', 'Nhân viên A', 20_000_000, 100_000, paid=False),
        _tx('05/03/2025', 'Administrator', 5_000_000, 25_000),
        _tx('28/02/2025', 'Nhân viên A', 8_000_000, 40_000, paid=False),
        _tx('15/12/2024', 'Quản lý B', 30_000_000, 150_000),
    ]


@pytest.fixture
def stats(transactions):
    return StatsService(lambda: transactions)


def test_admin_dashboard_all_months(stats, admin):
    data = stats.get_dashboard(admin)

    assert data['months'] == ['03/2025', '02/2025', '12/2024']
    assert data['selectedMonth'] == 'all'
    assert data['stats'] == {
        'totalAmount': 73_000_000, 'totalProfit': 365_000, 'count': 5, 'unpaidCount': 2
    }
    assert [p['name'] for p in data['chart']] == ['12/2024', '02/2025', '03/2025']
    assert data['chart'][2] == {'name': '03/2025', 'amount': 35_000_000, 'profit': 175_000}
    assert [row['sale'] for row in data['summary']] == ['Quản lý B', 'Nhân viên A', 'Administrator']


def test_month_filter_charts_by_day(stats, admin):
    data = stats.get_dashboard(admin, '03/2025')

    assert data['stats']['count'] == 3
    assert data['chart'] == [
        {'name': '05', 'amount': 25_000_000, 'profit': 125_000, 'fullDate': '05/03/2025'},
        {'name': '20', 'amount': 10_000_000, 'profit': 50_000, 'fullDate': '20/03/2025'},
    ]
    summary = {row['sale']: row for row in data['summary']}
    assert summary['Administrator']['count'] == 2
    assert summary['Administrator']['totalAmount'] == 15_000_000


def test_non_admin_sees_only_own_numbers(stats, staff, manager):
    data = stats.get_dashboard(staff)
    assert data['stats']['count'] == 2
    assert data['stats']['unpaidCount'] == 2
    assert data['months'] == ['03/2025', '02/2025']
    assert data['summary'] == []

    assert stats.get_dashboard(manager)['stats']['totalAmount'] == 30_000_000
    assert stats.get_dashboard(manager)['summary'] == []


def test_unknown_month_is_empty(stats, admin):
    data = stats.get_dashboard(admin, '01/2020')
    assert data['stats'] == {'totalAmount': 0, 'totalProfit': 0, 'count': 0, 'unpaidCount': 0}
    assert data['chart'] == []
    assert len(data['months']) == 3
