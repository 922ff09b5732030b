# ==============================================================================
# REPOSITORIO DE ESTADO
# ==============================================================================
# Serializa el AppState completo en el almacén clave-valor.
#
# Formato de datos (una clave por colección, JSON independiente):
#   transactions  -> [ {...}, ... ]
#   customers     -> [ {...}, ... ]
#   tasks         -> [ {...}, ... ]
#   notifications -> [ {...}, ... ]
#   users         -> [ {...}, ... ]
#   sitename      -> texto plano
#   sitelogo      -> texto plano (referencia de imagen)
# ==============================================================================

import json
from dataclasses import replace
from typing import Any, Callable, Dict, List

from cardmaster.models import (
    AppState,
    User,
    Customer,
    Transaction,
    Task,
    Notification,
)
from cardmaster.performance_logger import profile_function
from cardmaster.repositories.interfaces import IKeyValueStore

KEY_TRANSACTIONS = 'transactions'
KEY_CUSTOMERS = 'customers'
KEY_TASKS = 'tasks'
KEY_NOTIFICATIONS = 'notifications'
KEY_USERS = 'users'
KEY_SITE_NAME = 'sitename'
KEY_SITE_LOGO = 'sitelogo'

# clave -> (atributo de AppState, constructor desde dict)
COLLECTION_KEYS: Dict[str, tuple] = {
    KEY_TRANSACTIONS: ('transactions', Transaction.from_dict),
    KEY_CUSTOMERS: ('customers', Customer.from_dict),
    KEY_TASKS: ('tasks', Task.from_dict),
    KEY_NOTIFICATIONS: ('notifications', Notification.from_dict),
    KEY_USERS: ('users', User.from_dict),
}

SCALAR_KEYS: Dict[str, str] = {
    KEY_SITE_NAME: 'site_name',
    KEY_SITE_LOGO: 'site_logo',
}

ALL_KEYS = tuple(COLLECTION_KEYS) + tuple(SCALAR_KEYS)


class StateRepository:
    """
    Repositorio para el estado completo de la aplicación.

    No hay escrituras incrementales: save() reescribe las siete claves.
    """

    def __init__(self, store: IKeyValueStore):
        """
        Args:
            store: Almacén clave-valor (JsonFileStore o MemoryStore)
        """
        self.store = store

    @staticmethod
    def _decode_list(raw: str, factory: Callable[[Dict[str, Any]], Any]) -> List[Any]:
        # JSON corrupto propaga json.JSONDecodeError: se trata como error fatal de arranque
        return [factory(item) for item in json.loads(raw)]

    @profile_function(name="Cargar estado")
    def load(self, defaults: AppState) -> AppState:
        """
        Carga el estado guardado sobre los valores por defecto.

        Args:
            defaults: Estado inicial (usuarios semilla, transacciones de ejemplo...)

        Returns:
            Nuevo AppState; las claves ausentes conservan el valor por defecto
        """
        changes: Dict[str, Any] = {}

        for key, (attr, factory) in COLLECTION_KEYS.items():
            raw = self.store.get(key)
            if raw:
                changes[attr] = self._decode_list(raw, factory)

        for key, attr in SCALAR_KEYS.items():
            raw = self.store.get(key)
            if raw:
                changes[attr] = raw

        return replace(defaults, **changes)

    @profile_function(name="Guardar estado")
    def save(self, state: AppState) -> None:
        """
        Guarda todas las colecciones y los dos valores del sitio.

        Args:
            state: Snapshot completo a persistir
        """
        for key, (attr, _factory) in COLLECTION_KEYS.items():
            records = [item.to_dict() for item in getattr(state, attr)]
            self.store.set(key, json.dumps(records, ensure_ascii=False))

        for key, attr in SCALAR_KEYS.items():
            self.store.set(key, getattr(state, attr) or '')
