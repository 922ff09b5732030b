# ==============================================================================
# CONFIGURACIÓN - Variables de entorno
# ==============================================================================
# Todas las opciones se leen del entorno al importar el módulo.
#
#   export CARDMASTER_SECRET_KEY="clave_larga_y_aleatoria"
#   export CARDMASTER_DATA_DIR="/var/lib/cardmaster"
# ==============================================================================

import os

BASE = os.path.dirname(os.path.abspath(__file__))


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


# ═══════════════════════════════════════════════════════════════════════════════
# MODO PRODUCCIÓN
# ═══════════════════════════════════════════════════════════════════════════════
# True = Exige CARDMASTER_SECRET_KEY (solo advierte si falta)
PRODUCTION_MODE = _env_flag('CARDMASTER_PRODUCTION', False)

# ═══════════════════════════════════════════════════════════════════════════════
# SESIONES
# ═══════════════════════════════════════════════════════════════════════════════
DEFAULT_SECRET = "cardmaster_dev_secret_key_change_in_production"
SECRET_KEY = os.environ.get('CARDMASTER_SECRET_KEY')

SESSION_CONFIG = dict(
    SESSION_COOKIE_HTTPONLY=True,      # Protege contra XSS
    SESSION_COOKIE_SECURE=False,       # False para HTTP local (True solo para HTTPS)
    SESSION_COOKIE_SAMESITE='Lax',
    PERMANENT_SESSION_LIFETIME=86400,  # 24 horas
)

# ═══════════════════════════════════════════════════════════════════════════════
# DATOS Y SEMILLA
# ═══════════════════════════════════════════════════════════════════════════════
DATA_DIR = os.environ.get('CARDMASTER_DATA_DIR') or os.path.join(BASE, 'data')

# Transacciones de ejemplo generadas en el primer arranque
SAMPLE_TRANSACTIONS = _env_int('CARDMASTER_SAMPLE_TRANSACTIONS', 30)

# ═══════════════════════════════════════════════════════════════════════════════
# PROFILING
# ═══════════════════════════════════════════════════════════════════════════════
ENABLE_PROFILING = _env_flag('CARDMASTER_PROFILING', True)
LOGS_DIR = os.environ.get('CARDMASTER_LOGS_DIR') or os.path.join(BASE, 'logs')

# ═══════════════════════════════════════════════════════════════════════════════
# SERVIDOR DE DESARROLLO
# ═══════════════════════════════════════════════════════════════════════════════
HOST = os.environ.get('CARDMASTER_HOST', '0.0.0.0')
PORT = _env_int('CARDMASTER_PORT', 5000)

# Paginación del listado de transacciones
PAGE_SIZE = 20

# Cantidad de notificaciones mostradas en la campana
NOTIFICATION_PREVIEW_LIMIT = 8
