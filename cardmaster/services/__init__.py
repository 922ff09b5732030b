# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Esta capa contiene TODA la lógica de negocio de la aplicación.
#
# PRINCIPIOS:
# 1. Las mutaciones pasan por StateService (snapshot + flush completo)
# 2. Los permisos por rol se validan aquí, no en las rutas
# 3. Las rutas solo llaman a servicios y traducen los dicts de resultado
#
# ESTRUCTURA:
# ├── fee_service.py          → Cálculo de comisiones (funciones puras)
# ├── state_service.py        → Contenedor de estado
# ├── customer_service.py     → Clientes y sincronización desde transacciones
# ├── transaction_service.py  → Transacciones, listado y paginación
# ├── notification_service.py → Avisos de tareas
# ├── task_service.py         → Tablero de tareas y comentarios
# ├── user_service.py         → Login, usuarios, perfil, ajustes del sitio
# ├── stats_service.py        → Dashboard
# └── export_service.py       → Reporte CSV
# ==============================================================================

from cardmaster.services.fee_service import FeeBreakdown, calculate_fees, apply_fees
from cardmaster.services.state_service import StateService
from cardmaster.services.customer_service import CustomerService
from cardmaster.services.transaction_service import TransactionService
from cardmaster.services.notification_service import NotificationService
from cardmaster.services.task_service import TaskService
from cardmaster.services.user_service import UserService, LOGIN_ERROR
from cardmaster.services.stats_service import StatsService
from cardmaster.services.export_service import ExportService

__all__ = [
    'FeeBreakdown',
    'calculate_fees',
    'apply_fees',
    'StateService',
    'CustomerService',
    'TransactionService',
    'NotificationService',
    'TaskService',
    'UserService',
    'LOGIN_ERROR',
    'StatsService',
    'ExportService',
]
