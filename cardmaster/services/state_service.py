# ==============================================================================
# CONTENEDOR DE ESTADO
# ==============================================================================
# Dueño del AppState en memoria. Cada mutación:
#   1. calcula una colección NUEVA (funciones puras de models.state)
#   2. reemplaza el snapshot con dataclasses.replace()
#   3. hace flush COMPLETO de las siete claves al almacén
#
# Los permisos NO se validan aquí: se validan en los servicios de dominio
# (TransactionService, CustomerService, ...) antes de llamar a este módulo.
# ==============================================================================

import threading
from dataclasses import replace
from typing import Any, Optional

from cardmaster.models import AppState, COLLECTIONS
from cardmaster.models import state as collection_ops
from cardmaster.repositories.interfaces import IStateRepository


class StateService:
    """
    Contenedor de estado de la aplicación.

    Uso:
        state_service = StateService(StateRepository(store), build_default_state())
        state_service.add('transactions', tx)
        state_service.state.transactions  # snapshot actual
    """

    def __init__(self, state_repo: IStateRepository, defaults: AppState):
        """
        Carga el estado persistido sobre los valores por defecto.

        Args:
            state_repo: Repositorio de estado
            defaults: Estado inicial para las claves ausentes

        Raises:
            json.JSONDecodeError: Si algún dato persistido está corrupto
        """
        self.state_repo = state_repo
        # Un solo escritor lógico: el lock serializa mutaciones de peticiones concurrentes
        self.lock = threading.RLock()
        self._state = state_repo.load(defaults)

    @property
    def state(self) -> AppState:
        return self._state

    # =========================================================================
    # MUTACIÓN GENÉRICA
    # =========================================================================

    def commit(self, **changes: Any) -> AppState:
        """
        Reemplaza campos del snapshot y persiste todo.

        Args:
            **changes: Atributos de AppState a reemplazar

        Returns:
            Nuevo snapshot
        """
        with self.lock:
            self._state = replace(self._state, **changes)
            self.state_repo.save(self._state)
            return self._state

    @staticmethod
    def _check_collection(collection: str) -> None:
        if collection not in COLLECTIONS:
            raise ValueError(f"Colección desconocida: {collection}")

    # =========================================================================
    # CRUD POR COLECCIÓN
    # =========================================================================

    def get(self, collection: str, record_id: str) -> Optional[Any]:
        """Busca un registro por id en una colección."""
        self._check_collection(collection)
        return collection_ops.find_by_id(getattr(self._state, collection), record_id)

    def add(self, collection: str, *records: Any, newest_first: bool = True) -> AppState:
        """
        Agrega registros a una colección.

        Args:
            collection: 'transactions', 'customers', ...
            records: Registros a insertar
            newest_first: True = al inicio (más reciente primero), False = al final
        """
        self._check_collection(collection)
        with self.lock:
            items = getattr(self._state, collection)
            if newest_first:
                items = collection_ops.prepend(items, *records)
            else:
                for record in records:
                    items = collection_ops.append(items, record)
            return self.commit(**{collection: items})

    def update(self, collection: str, record: Any) -> AppState:
        """Reemplaza el registro con el mismo id (sin efecto si no existe)."""
        self._check_collection(collection)
        with self.lock:
            items = collection_ops.replace_by_id(getattr(self._state, collection), record)
            return self.commit(**{collection: items})

    def delete(self, collection: str, record_id: str) -> AppState:
        """Elimina el registro con ese id (sin efecto si no existe)."""
        self._check_collection(collection)
        with self.lock:
            items = collection_ops.remove_by_id(getattr(self._state, collection), record_id)
            return self.commit(**{collection: items})

    # =========================================================================
    # CONFIGURACIÓN DEL SITIO
    # =========================================================================

    def update_site(self, site_name: str, site_logo: str) -> AppState:
        return self.commit(site_name=site_name, site_logo=site_logo)
