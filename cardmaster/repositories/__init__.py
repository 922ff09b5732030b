# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia.
#
# ESTRUCTURA:
# ├── interfaces.py       → Protocolos (IKeyValueStore, IStateRepository)
# ├── base.py             → Almacenes clave-valor (JsonFileStore, MemoryStore)
# └── state_repository.py → Serialización del AppState por clave
# ==============================================================================

from .interfaces import IKeyValueStore, IStateRepository
from .base import BaseStore, JsonFileStore, MemoryStore
from .state_repository import StateRepository, ALL_KEYS

__all__ = [
    # Interfaces
    'IKeyValueStore',
    'IStateRepository',

    # Almacenes
    'BaseStore',
    'JsonFileStore',
    'MemoryStore',

    # Repositorio de estado
    'StateRepository',
    'ALL_KEYS',
]
