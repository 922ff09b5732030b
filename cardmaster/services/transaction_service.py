# ==============================================================================
# SERVICIO DE TRANSACCIONES
# ==============================================================================
# Registro de transacciones de retiro/renovación con tarjeta.
#
# FLUJO AL GUARDAR:
#   1. apply_fees()   → recalcula posCost, customerCharge y profit
#   2. StateService   → inserta al inicio o reemplaza por id (flush completo)
#   3. CustomerService.sync_from_transaction() → crea el cliente si no existe
#
# PERMISOS:
# - Crear: cualquier rol
# - Editar: ADMIN y MANAGER (USER = sin efecto)
# - Eliminar: solo ADMIN (MANAGER y USER = sin efecto)
# ==============================================================================

import math
from typing import Any, Dict, List, Optional

from cardmaster.config import PAGE_SIZE
from cardmaster.models import Transaction, TransactionStatus, TransactionType, User, UserRole
from cardmaster.services.customer_service import CustomerService
from cardmaster.services.fee_service import apply_fees, calculate_fees
from cardmaster.services.state_service import StateService
from cardmaster.utils import get_current_date, is_valid_date, parse_date_string

INVALID_DATE_ERROR = 'Ngày giao dịch không hợp lệ (DD/MM/YYYY)'


def sort_newest_first(transactions: List[Transaction]) -> List[Transaction]:
    """Ordena por fecha (DD/MM/YYYY) descendente; sort estable para empates."""
    return sorted(transactions, key=lambda t: parse_date_string(t.timestamp), reverse=True)


class TransactionService:
    """
    Servicio para gestión de transacciones.

    Responsabilidades:
    - Crear/editar/eliminar con validación de rol
    - Mantener los campos de comisión derivados
    - Listado filtrado por rol con búsqueda y paginación
    """

    def __init__(self, state_service: StateService, customer_service: CustomerService):
        self.state_service = state_service
        self.customer_service = customer_service

    @property
    def transactions(self) -> List[Transaction]:
        return self.state_service.state.transactions

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self.state_service.get('transactions', transaction_id)

    # =========================================================================
    # FORMULARIO
    # =========================================================================

    @staticmethod
    def new_transaction(actor: User, **fields: Any) -> Transaction:
        """
        Transacción con los valores por defecto del formulario.

        Args:
            actor: Usuario logueado (su nombre queda como "sale")
            **fields: Valores que sobrescriben los defaults

        Returns:
            Transaction con comisiones ya calculadas
        """
        values = dict(
            customer_name='',
            bank='',
            card_type='',
            last_four_digits='',
            pos_fee_percent=1.5,
            customer_fee_percent=2.0,
            type=TransactionType.WITHDRAW,
            status=TransactionStatus.UNPAID,
            timestamp=get_current_date(),
            sale=actor.full_name
        )
        values.update(fields)
        return apply_fees(Transaction(**values))

    @staticmethod
    def preview_fees(amount, pos_fee_percent, customer_fee_percent) -> Dict[str, int]:
        """Calculadora en vivo del formulario."""
        fees = calculate_fees(amount, pos_fee_percent, customer_fee_percent)
        return {
            'posCost': fees.pos_cost,
            'customerCharge': fees.customer_charge,
            'profit': fees.profit,
        }

    # =========================================================================
    # MUTACIONES
    # =========================================================================

    def create(self, actor: User, transaction: Transaction) -> Dict[str, Any]:
        """
        Guarda una transacción nueva al inicio de la lista.

        Returns:
            Dict {'ok': True, 'transaction': ..., 'customer': Customer nuevo o None}
        """
        if not is_valid_date(transaction.timestamp):
            return {'ok': False, 'error': INVALID_DATE_ERROR}

        transaction = apply_fees(transaction)
        with self.state_service.lock:
            self.state_service.add('transactions', transaction)
            customer = self.customer_service.sync_from_transaction(transaction)
        return {'ok': True, 'transaction': transaction, 'customer': customer}

    def update(self, actor: User, transaction: Transaction) -> Dict[str, Any]:
        """
        Reemplaza una transacción existente.

        USER no puede editar: se retorna forbidden sin tocar el estado.
        """
        if not actor.can_edit():
            return {'ok': False, 'error': 'Không có quyền sửa giao dịch', 'forbidden': True}
        if not is_valid_date(transaction.timestamp):
            return {'ok': False, 'error': INVALID_DATE_ERROR}

        transaction = apply_fees(transaction)
        with self.state_service.lock:
            if self.get_transaction(transaction.id) is None:
                return {'ok': False, 'error': 'Không tìm thấy giao dịch'}
            self.state_service.update('transactions', transaction)
            customer = self.customer_service.sync_from_transaction(transaction)
        return {'ok': True, 'transaction': transaction, 'customer': customer}

    def delete(self, actor: User, transaction_id: str) -> Dict[str, Any]:
        """Elimina una transacción. Solo ADMIN."""
        if actor.role != UserRole.ADMIN:
            return {'ok': False, 'error': 'Không có quyền xóa giao dịch', 'forbidden': True}
        self.state_service.delete('transactions', transaction_id)
        return {'ok': True}

    # =========================================================================
    # LISTADO
    # =========================================================================

    def visible_to(self, actor: User) -> List[Transaction]:
        """USER solo ve las transacciones cuyo sale es su nombre."""
        if actor.role == UserRole.USER:
            return [t for t in self.transactions if t.sale == actor.full_name]
        return list(self.transactions)

    def list_transactions(
        self,
        actor: User,
        search: str = '',
        page: int = 1,
        page_size: int = PAGE_SIZE
    ) -> Dict[str, Any]:
        """
        Listado paginado para la tabla de transacciones.

        Args:
            actor: Usuario logueado (filtro por rol)
            search: Texto a buscar en cliente, id, banco o sale
            page: Página (1-indexed); fuera de rango se ajusta
            page_size: Filas por página

        Returns:
            Dict {'items', 'total', 'page', 'pages'}
        """
        q = (search or '').lower()
        matches = [
            t for t in self.visible_to(actor)
            if q in t.customer_name.lower()
            or q in t.id.lower()
            or q in t.bank.lower()
            or q in t.sale.lower()
        ]
        matches = sort_newest_first(matches)

        pages = max(1, math.ceil(len(matches) / page_size))
        page = min(max(1, page), pages)
        start = (page - 1) * page_size
        return {
            'items': matches[start:start + page_size],
            'total': len(matches),
            'page': page,
            'pages': pages,
        }
