from cardmaster.models import Transaction
from cardmaster.services.fee_service import FeeBreakdown, apply_fees, calculate_fees


def test_ten_million_scenario():
    fees = calculate_fees(10_000_000, 1.5, 2.0)
    assert fees == FeeBreakdown(pos_cost=150_000, customer_charge=200_000, profit=50_000)


def test_profit_is_charge_minus_cost():
    for amount, pos, cust in [(5_000_000, 1.62, 2.35), (123_456_789, 1.9, 3.5), (0, 1.5, 2.0)]:
        fees = calculate_fees(amount, pos, cust)
        assert fees.pos_cost == round(amount * pos / 100)
        assert fees.customer_charge == round(amount * cust / 100)
        assert fees.profit == fees.customer_charge - fees.pos_cost


def test_negative_profit_is_allowed():
    fees = calculate_fees(1_000_000, 2.5, 2.0)
    assert fees.profit == -5_000


def test_apply_fees_returns_new_transaction():
    tx = Transaction(customer_name='A', bank='B', card_type='Visa', last_four_digits='1111',
                     amount=10_000_000, pos_fee_percent=1.5, customer_fee_percent=2.0,
                     pos_cost=1, customer_charge=1, profit=1)
    updated = apply_fees(tx)
    assert updated is not tx
    assert (updated.pos_cost, updated.customer_charge, updated.profit) == (150_000, 200_000, 50_000)
    # El original no se modifica
    assert tx.profit == 1
