# ==============================================================================
# ALMACENES CLAVE-VALOR - Implementaciones del servicio de persistencia
# ==============================================================================

import os
import re
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional


class BaseStore(ABC):
    """
    Clase base abstracta para los almacenes clave-valor.
    Los valores son texto opaco (normalmente JSON ya serializado).
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass


class MemoryStore(BaseStore):
    """
    Almacén en memoria. Usado en tests y como store efímero.
    """

    def __init__(self, initial: Dict[str, str] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def keys(self):
        return list(self._data.keys())


class JsonFileStore(BaseStore):
    """
    Almacén en disco: un archivo por clave dentro de `base_path`.

    Ejemplo: base_path/transactions.json, base_path/sitename.json

    Manejo de concurrencia básico mediante un lock global y escritura
    atómica (archivo temporal + os.replace).
    """

    # Lock global para evitar escrituras concurrentes a archivos
    _file_lock = threading.RLock()

    _KEY_PATTERN = re.compile(r'^[A-Za-z0-9_\-]+$')

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Carpeta donde viven los archivos de datos
        """
        self.base_path = base_path
        os.makedirs(base_path, exist_ok=True)

    def _path_for(self, key: str) -> str:
        if not self._KEY_PATTERN.match(key):
            raise ValueError(f"Clave de almacenamiento inválida: {key!r}")
        return os.path.join(self.base_path, f"{key}.json")

    def get(self, key: str) -> Optional[str]:
        """
        Lee el texto guardado para una clave.

        Returns:
            Contenido del archivo o None si no existe
        """
        path = self._path_for(key)
        with self._file_lock:
            if not os.path.exists(path):
                return None
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()

    def set(self, key: str, value: str) -> None:
        """
        Escribe el valor de una clave.

        Raises:
            OSError: Si hay error de escritura
        """
        path = self._path_for(key)
        with self._file_lock:
            # Escribir a archivo temporal primero para atomicidad
            temp_path = path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    f.write(value)
                # Reemplazar archivo original (operación atómica en la mayoría de sistemas)
                os.replace(temp_path, path)
            except OSError:
                # Limpiar archivo temporal si algo falla
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise
