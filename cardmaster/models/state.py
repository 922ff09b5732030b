# ==============================================================================
# ESTADO DE LA APLICACIÓN - Snapshot de todas las colecciones
# ==============================================================================
# AppState agrupa las cinco colecciones y los dos valores de configuración
# del sitio. Las operaciones de colección son funciones puras: reciben una
# lista y devuelven una lista NUEVA. StateService reemplaza el snapshot
# completo con dataclasses.replace() tras cada mutación.
# ==============================================================================

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, TypeVar

from cardmaster.models.entities import (
    User,
    Customer,
    Transaction,
    Task,
    Notification,
)

DEFAULT_SITE_NAME = 'CardMaster'

T = TypeVar('T')


@dataclass(frozen=True)
class AppState:
    """
    Snapshot inmutable del estado completo.

    Las listas se reemplazan, no se mutan: nadie debe hacer append()
    sobre un snapshot publicado.
    """
    users: List[User] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    customers: List[Customer] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    notifications: List[Notification] = field(default_factory=list)
    site_name: str = DEFAULT_SITE_NAME
    site_logo: str = ''


# Nombres de colección válidos para StateService.add/update/delete
COLLECTIONS = ('users', 'transactions', 'customers', 'tasks', 'notifications')


# ==============================================================================
# OPERACIONES PURAS SOBRE COLECCIONES
# ==============================================================================

def find_by_id(items: Sequence[T], record_id: str) -> Optional[T]:
    for item in items:
        if item.id == record_id:
            return item
    return None


def prepend(items: Sequence[T], *records: T) -> List[T]:
    """Inserta al inicio (más reciente primero)."""
    return list(records) + list(items)


def append(items: Sequence[T], record: T) -> List[T]:
    return list(items) + [record]


def replace_by_id(items: Sequence[T], record: T) -> List[T]:
    """Reemplaza el registro con el mismo id. Sin cambios si no existe."""
    return [record if item.id == record.id else item for item in items]


def remove_by_id(items: Sequence[T], record_id: str) -> List[T]:
    return [item for item in items if item.id != record_id]
