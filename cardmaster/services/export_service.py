# ==============================================================================
# EXPORTACIÓN CSV DE TRANSACCIONES
# ==============================================================================
# Reporte por rango de fechas (inclusivo) para abrir en Excel:
#   - UTF-8 con BOM
#   - Encabezados fijos en vietnamita
#   - Cada valor entre comillas dobles, comas internas reemplazadas por '.'
#   - Filas separadas por '\n'
# ==============================================================================

import csv
import io
from typing import Any, Dict, List

from cardmaster.models import Transaction, User
from cardmaster.services.transaction_service import TransactionService
from cardmaster.utils import parse_date_string, parse_range_date

BOM = '\ufeff'

CSV_HEADERS = [
    'ID Giao dịch', 'Ngày', 'Sale', 'Khách hàng', 'Ngân hàng', 'Loại thẻ',
    'Số cuối', 'Loại GD', 'Số tiền', 'Rút thực tế', 'POS', 'Phí POS (%)',
    'Tiền phí POS', 'Phí khách (%)', 'Tiền phí khách', 'Lợi nhuận', 'Trạng thái',
]


def _cell(value: Any) -> str:
    # 2.0 -> "2"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).replace(',', '.')


def _row(t: Transaction) -> List[str]:
    return [_cell(v) for v in (
        t.id, t.timestamp, t.sale, t.customer_name, t.bank, t.card_type,
        t.last_four_digits, t.type.value, t.amount, t.withdraw_amount, t.pos,
        t.pos_fee_percent, t.pos_cost, t.customer_fee_percent, t.customer_charge,
        t.profit, t.status.value,
    )]


def build_csv(transactions: List[Transaction]) -> str:
    """Contenido CSV completo (con BOM, sin salto de línea final)."""
    si = io.StringIO()
    csv.writer(si, lineterminator='\n').writerow(CSV_HEADERS)
    writer = csv.writer(si, quoting=csv.QUOTE_ALL, lineterminator='\n')
    for t in transactions:
        writer.writerow(_row(t))
    return BOM + si.getvalue().rstrip('\n')


class ExportService:
    """Genera el reporte CSV de transacciones por rango de fechas."""

    def __init__(self, transaction_service: TransactionService):
        self.transaction_service = transaction_service

    def export_range(self, actor: User, date_from, date_to) -> Dict[str, Any]:
        """
        Exporta las transacciones entre dos fechas (inclusivo).

        Args:
            actor: Usuario logueado (USER solo exporta sus transacciones)
            date_from: Inicio (date, DD/MM/YYYY o YYYY-MM-DD)
            date_to: Fin (mismo formato)

        Returns:
            Dict {'ok': True, 'filename', 'content', 'count'} o {'ok': False, 'error'}
        """
        try:
            start = parse_range_date(date_from)
            end = parse_range_date(date_to)
        except ValueError:
            return {'ok': False, 'error': 'Vui lòng chọn khoảng thời gian!'}
        if start is None or end is None:
            return {'ok': False, 'error': 'Vui lòng chọn khoảng thời gian!'}

        selected = [
            t for t in self.transaction_service.visible_to(actor)
            if start <= parse_date_string(t.timestamp) <= end
        ]
        if not selected:
            return {'ok': False, 'error': 'Không có giao dịch nào trong khoảng thời gian này!'}

        return {
            'ok': True,
            'filename': f'Bao_cao_giao_dich_{start.isoformat()}_den_{end.isoformat()}.csv',
            'content': build_csv(selected),
            'count': len(selected),
        }
