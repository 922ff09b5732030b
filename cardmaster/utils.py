# ==============================================================================
# UTILIDADES - IDs, fechas y montos
# ==============================================================================
# Todas las fechas del sistema viajan como texto DD/MM/YYYY.
# Para comparar u ordenar se reconstruye un date con parse_date_string().
# ==============================================================================

import random
import re
from datetime import date, datetime
from typing import Optional, Union

ID_ALPHABET = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ'
ID_LENGTH = 8

DATE_FORMAT = '%d/%m/%Y'

DEFAULT_AVATAR = 'https://www.gravatar.com/avatar/00000000000000000000000000000000?d=mp&f=y'


def generate_id(rng: random.Random = None) -> str:
    """
    Genera un identificador opaco de 8 caracteres [0-9A-Z].

    No es criptográficamente único; las colisiones se ignoran.
    """
    rng = rng or random
    return ''.join(rng.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


def format_date(value: date) -> str:
    """Formatea un date como DD/MM/YYYY."""
    return value.strftime(DATE_FORMAT)


def get_current_date() -> str:
    """Fecha de hoy en formato DD/MM/YYYY."""
    return format_date(date.today())


def get_current_datetime() -> str:
    """Fecha y hora actual (DD/MM/YYYY HH:MM), usada en comentarios de tareas."""
    return datetime.now().strftime(DATE_FORMAT + ' %H:%M')


def parse_date_string(value: str) -> date:
    """
    Reconstruye un date desde DD/MM/YYYY.

    Solo se toma la parte de fecha si el texto trae hora
    ("05/03/2025 14:20").

    Raises:
        ValueError: Si el texto no tiene tres componentes numéricos
    """
    day, month, year = (int(part) for part in value.split()[0].split('/'))
    return date(year, month, day)


def is_valid_date(value: str) -> bool:
    """True si el texto es una fecha DD/MM/YYYY válida."""
    try:
        parse_date_string(value)
    except (ValueError, IndexError, AttributeError):
        return False
    return True


def parse_range_date(value: Union[str, date, None]) -> Optional[date]:
    """
    Parsea un límite de rango de exportación.

    Acepta date, DD/MM/YYYY o YYYY-MM-DD (valor de un <input type="date">).
    Retorna None si el valor está vacío.
    """
    if value is None or value == '':
        return None
    if isinstance(value, date):
        return value
    value = value.strip()
    if '/' in value:
        return parse_date_string(value)
    return datetime.strptime(value, '%Y-%m-%d').date()


def parse_currency(value: str) -> int:
    """Extrae solo los dígitos de un texto de moneda ('10.000.000 đ' -> 10000000)."""
    digits = re.sub(r'[^0-9]', '', value or '')
    return int(digits) if digits else 0
