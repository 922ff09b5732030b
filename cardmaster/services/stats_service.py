# ==============================================================================
# SERVICIO DE ESTADÍSTICAS (DASHBOARD)
# ==============================================================================
# Calcula los indicadores del panel principal.
#
# CONJUNTO BASE:
# - ADMIN ve todas las transacciones
# - MANAGER y USER solo las suyas (sale == nombre mostrado)
#
# FILTRO DE MES: 'all' o 'MM/YYYY'
# - 'all'   → gráfico por mes (del más antiguo al más reciente)
# - mes     → gráfico por día del mes
# ==============================================================================

from collections import OrderedDict
from typing import Any, Dict, List, Tuple

from cardmaster.models import Transaction, TransactionStatus, User

ALL_MONTHS = 'all'


def _month_key(timestamp: str) -> str:
    """'05/03/2025' -> '03/2025'."""
    _, month, year = timestamp.split()[0].split('/')
    return f"{month}/{year}"


def _month_sort_key(key: str) -> Tuple[int, int]:
    month, year = (int(part) for part in key.split('/'))
    return year, month


class StatsService:
    """
    Servicio para cálculo de estadísticas del dashboard.

    Responsabilidades:
    - Totales de monto y ganancia
    - Series para gráficos por mes o por día
    - Resumen por vendedor (solo ADMIN)
    """

    def __init__(self, transactions_loader):
        """
        Args:
            transactions_loader: Función que retorna la lista de transacciones.
        """
        self._transactions_loader = transactions_loader

    def base_transactions(self, actor: User) -> List[Transaction]:
        transactions = self._transactions_loader()
        if actor.is_admin():
            return list(transactions)
        return [t for t in transactions if t.sale == actor.full_name]

    @staticmethod
    def available_months(transactions: List[Transaction]) -> List[str]:
        """Meses con transacciones (MM/YYYY), el más reciente primero."""
        months = {_month_key(t.timestamp) for t in transactions}
        return sorted(months, key=_month_sort_key, reverse=True)

    @staticmethod
    def filter_month(transactions: List[Transaction], month: str) -> List[Transaction]:
        if not month or month == ALL_MONTHS:
            return list(transactions)
        return [t for t in transactions if _month_key(t.timestamp) == month]

    @staticmethod
    def totals(transactions: List[Transaction]) -> Dict[str, int]:
        return {
            'totalAmount': sum(t.amount for t in transactions),
            'totalProfit': sum(t.profit for t in transactions),
            'count': len(transactions),
            'unpaidCount': sum(1 for t in transactions if t.status == TransactionStatus.UNPAID),
        }

    @staticmethod
    def chart_by_month(transactions: List[Transaction]) -> List[Dict[str, Any]]:
        buckets: Dict[str, Dict[str, Any]] = {}
        for t in transactions:
            key = _month_key(t.timestamp)
            bucket = buckets.setdefault(key, {'name': key, 'amount': 0, 'profit': 0})
            bucket['amount'] += t.amount
            bucket['profit'] += t.profit
        return [buckets[k] for k in sorted(buckets, key=_month_sort_key)]

    @staticmethod
    def chart_by_day(transactions: List[Transaction]) -> List[Dict[str, Any]]:
        buckets: Dict[str, Dict[str, Any]] = OrderedDict()
        for t in transactions:
            day = t.timestamp.split('/')[0]
            bucket = buckets.setdefault(day, {
                'name': day, 'amount': 0, 'profit': 0, 'fullDate': t.timestamp
            })
            bucket['amount'] += t.amount
            bucket['profit'] += t.profit
        return sorted(buckets.values(), key=lambda b: int(b['name']))

    @staticmethod
    def sales_summary(transactions: List[Transaction]) -> List[Dict[str, Any]]:
        """Totales por vendedor, mayor ganancia primero."""
        summary: Dict[str, Dict[str, Any]] = {}
        for t in transactions:
            row = summary.setdefault(t.sale, {
                'sale': t.sale, 'totalAmount': 0, 'totalProfit': 0, 'count': 0
            })
            row['totalAmount'] += t.amount
            row['totalProfit'] += t.profit
            row['count'] += 1
        return sorted(summary.values(), key=lambda r: r['totalProfit'], reverse=True)

    def get_dashboard(self, actor: User, month: str = ALL_MONTHS) -> Dict[str, Any]:
        """
        Datos completos del dashboard.

        Args:
            actor: Usuario logueado
            month: 'all' o 'MM/YYYY'

        Returns:
            Dict con months, selectedMonth, stats, chart y summary
        """
        month = month or ALL_MONTHS
        base = self.base_transactions(actor)
        selected = self.filter_month(base, month)

        if month == ALL_MONTHS:
            chart = self.chart_by_month(base)
        else:
            chart = self.chart_by_day(selected)

        return {
            'months': self.available_months(base),
            'selectedMonth': month,
            'stats': self.totals(selected),
            'chart': chart,
            'summary': self.sales_summary(selected) if actor.is_admin() else [],
        }
