# ==============================================================================
# DATOS INICIALES
# ==============================================================================
# Valores por defecto que se usan cuando el almacén no tiene una clave:
#   - 3 usuarios (admin / manager / user), contraseña = username
#   - N transacciones de ejemplo (CARDMASTER_SAMPLE_TRANSACTIONS, 30 por defecto)
#   - Nombre del sitio "CardMaster" sin logo
#
# Las contraseñas semilla se guardan en texto plano; AppContainer las migra a
# hash werkzeug en el arranque (UserService.migrate_passwords_to_hash).
# ==============================================================================

import random
from datetime import date
from typing import Dict, List

from cardmaster.models import (
    AppState,
    DEFAULT_SITE_NAME,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
    UserRole,
)
from cardmaster.services.fee_service import apply_fees
from cardmaster.utils import DEFAULT_AVATAR, format_date, generate_id, parse_date_string

# Listas del autocompletado del formulario de transacción
INITIAL_SUGGESTIONS: Dict[str, List[str]] = {
    'customers': [
        'Nguyễn Văn Anh', 'Trần Thị Bình', 'Lê Văn Cường', 'Phạm Minh Đức', 'Hoàng Gia Bảo',
        'Đặng Thu Thảo', 'Vũ Minh Hải', 'Ngô Thanh Vân', 'Bùi Xuân Huấn', 'Phan Quân',
    ],
    'pos': [
        'POS VPBank - Q1', 'POS Techcombank - Q3', 'POS TPBank - Tân Bình',
        'POS VIB - Cầu Giấy', 'POS MB - Hoàn Kiếm', 'POS Sacombank - Thủ Đức',
    ],
    'banks': ['Techcombank', 'VPBank', 'Vietcombank', 'MB Bank', 'TPBank', 'VIB', 'Sacombank', 'ACB'],
    'cardTypes': [
        'Visa Signature', 'Mastercard World', 'JCB Platinum',
        'Visa Infinite', 'Visa Platinum', 'American Express',
    ],
}


def suggest(field: str, query: str = '') -> List[str]:
    """
    Opciones de autocompletado del formulario que contienen query (sin mayúsculas).

    Con query vacío retorna la lista completa del campo.

    Raises:
        KeyError: Si field no es una de las listas de INITIAL_SUGGESTIONS
    """
    q = (query or '').strip().lower()
    return [value for value in INITIAL_SUGGESTIONS[field] if q in value.lower()]


def build_default_users() -> List[User]:
    """Usuarios del primer arranque."""
    return [
        User(id='1', username='admin', full_name='Administrator',
             role=UserRole.ADMIN, avatar=DEFAULT_AVATAR, password='admin'),
        User(id='2', username='user', full_name='Nhân viên A',
             role=UserRole.USER, avatar=DEFAULT_AVATAR, password='user'),
        User(id='3', username='manager', full_name='Quản lý B',
             role=UserRole.MANAGER, avatar=DEFAULT_AVATAR, password='manager'),
    ]


def generate_sample_transactions(
    count: int,
    users: List[User] = None,
    rng: random.Random = None,
    today: date = None
) -> List[Transaction]:
    """
    Genera transacciones aleatorias de los últimos tres meses.

    Args:
        count: Cantidad a generar
        users: Usuarios cuyos nombres se usan como "sale"
        rng: Generador (inyectable para tests deterministas)
        today: Fecha de referencia

    Returns:
        Lista ordenada de más reciente a más antigua
    """
    rng = rng or random.Random()
    today = today or date.today()
    sales = [u.full_name for u in (users or build_default_users())]

    transactions = []
    for _ in range(count):
        # Mes 0-2 hacia atrás, día 1-28 para que exista en todos los meses
        month_index = today.year * 12 + (today.month - 1) - rng.randint(0, 2)
        tx_date = date(month_index // 12, month_index % 12 + 1, rng.randint(1, 28))

        amount = rng.randint(5_000_000, 200_000_000)
        transaction = Transaction(
            id=generate_id(rng),
            timestamp=format_date(tx_date),
            sale=rng.choice(sales),
            customer_name=rng.choice(INITIAL_SUGGESTIONS['customers']),
            bank=rng.choice(INITIAL_SUGGESTIONS['banks']),
            card_type=rng.choice(INITIAL_SUGGESTIONS['cardTypes']),
            last_four_digits=str(rng.randint(1000, 9999)),
            type=rng.choice(list(TransactionType)),
            amount=amount,
            withdraw_amount=amount,
            pos=rng.choice(INITIAL_SUGGESTIONS['pos']),
            pos_fee_percent=round(rng.uniform(1.5, 1.9), 2),
            customer_fee_percent=round(rng.uniform(2.0, 3.5), 2),
            status=TransactionStatus.PAID if rng.random() > 0.3 else TransactionStatus.UNPAID
        )
        transactions.append(apply_fees(transaction))

    transactions.sort(key=lambda t: parse_date_string(t.timestamp), reverse=True)
    return transactions


def build_default_state(sample_count: int = 30, rng: random.Random = None) -> AppState:
    """Estado usado para cada clave ausente en el almacén."""
    users = build_default_users()
    return AppState(
        users=users,
        transactions=generate_sample_transactions(sample_count, users, rng),
        customers=[],
        tasks=[],
        notifications=[],
        site_name=DEFAULT_SITE_NAME,
        site_logo=''
    )
