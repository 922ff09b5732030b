# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# El almacenamiento es un servicio clave-valor opaco:
#   get(key) -> texto o None
#   set(key, texto)
#
# 1. INDEPENDENCIA DE ALMACENAMIENTO
#    - StateRepository depende de IKeyValueStore, NO de archivos
#    - JsonFileStore (disco) y MemoryStore (tests) son intercambiables
#
# 2. TESTING
#    - Los tests de servicios usan MemoryStore, sin tocar disco
#
# ==============================================================================

from typing import Optional, Protocol, runtime_checkable

from cardmaster.models import AppState


@runtime_checkable
class IKeyValueStore(Protocol):
    """
    Contrato mínimo del almacenamiento persistente.
    Cada valor es un texto ya serializado; el store no lo interpreta.
    """

    def get(self, key: str) -> Optional[str]:
        """Retorna el valor guardado o None si la clave no existe."""
        ...

    def set(self, key: str, value: str) -> None:
        """Guarda (reemplaza) el valor de una clave."""
        ...


@runtime_checkable
class IStateRepository(Protocol):
    """
    Interfaz del repositorio de estado completo.
    Usado por: StateService.
    """

    def load(self, defaults: AppState) -> AppState:
        """Lee cada clave; las ausentes conservan el valor de `defaults`."""
        ...

    def save(self, state: AppState) -> None:
        """Escribe TODAS las claves (flush completo, sin diffs)."""
        ...
