# ==============================================================================
# CÁLCULO DE COMISIONES
# ==============================================================================
# posCost        = round(amount * posFeePercent / 100)
# customerCharge = round(amount * customerFeePercent / 100)
# profit         = customerCharge - posCost
#
# La ganancia puede ser negativa si la comisión del cliente es menor que la
# del POS; es un valor válido, no un error.
# ==============================================================================

from dataclasses import replace
from typing import NamedTuple

from cardmaster.models import Transaction


class FeeBreakdown(NamedTuple):
    """Resultado del cálculo de comisiones (montos en VND enteros)."""
    pos_cost: int
    customer_charge: int
    profit: int


def calculate_fees(amount, pos_fee_percent, customer_fee_percent) -> FeeBreakdown:
    """
    Calcula costo POS, cobro al cliente y ganancia.

    Args:
        amount: Monto de la transacción (entero >= 0)
        pos_fee_percent: Comisión del terminal POS (%)
        customer_fee_percent: Comisión cobrada al cliente (%)

    Returns:
        FeeBreakdown(pos_cost, customer_charge, profit)
    """
    pos_cost = round(amount * pos_fee_percent / 100)
    customer_charge = round(amount * customer_fee_percent / 100)
    return FeeBreakdown(pos_cost, customer_charge, customer_charge - pos_cost)


def apply_fees(transaction: Transaction) -> Transaction:
    """
    Retorna una copia de la transacción con los campos derivados recalculados.
    Se llama al guardar (crear/editar), así lo persistido siempre cumple la fórmula.
    """
    fees = calculate_fees(
        transaction.amount,
        transaction.pos_fee_percent,
        transaction.customer_fee_percent
    )
    return replace(
        transaction,
        pos_cost=fees.pos_cost,
        customer_charge=fees.customer_charge,
        profit=fees.profit
    )
