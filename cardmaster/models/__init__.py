# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Beneficios:
#   - Type hints para mejor documentación y autocompletado
#   - Fácil serialización/deserialización a JSON (to_dict / from_dict)
#   - Independiente del mecanismo de persistencia (archivos JSON o memoria)
# ==============================================================================

from .entities import (
    # Usuarios
    User,
    UserRole,

    # Clientes
    Customer,

    # Transacciones
    Transaction,
    TransactionType,
    TransactionStatus,

    # Tareas
    Task,
    TaskComment,
    TaskStatus,

    # Notificaciones
    Notification,
)
from .state import AppState, COLLECTIONS, DEFAULT_SITE_NAME

__all__ = [
    # Usuarios
    'User',
    'UserRole',

    # Clientes
    'Customer',

    # Transacciones
    'Transaction',
    'TransactionType',
    'TransactionStatus',

    # Tareas
    'Task',
    'TaskComment',
    'TaskStatus',

    # Notificaciones
    'Notification',

    # Estado
    'AppState',
    'COLLECTIONS',
    'DEFAULT_SITE_NAME',
]
