# ==============================================================================
# PROFILING Y LOGS DE RENDIMIENTO
# ==============================================================================
# Registra cuánto tardan las rutas HTTP y las operaciones de persistencia.
# Los logs son texto legible, uno por tipo, dentro de config.LOGS_DIR:
#
#   performance.log     → cada petición (acción, usuario, estado, tiempo)
#   slow_routes.log     → peticiones sobre el umbral
#   slow_functions.log  → llamadas lentas de funciones decoradas
#
# ACTIVAR/DESACTIVAR: variable de entorno CARDMASTER_PROFILING
# ==============================================================================

import os
import time
import threading
from datetime import datetime
from functools import wraps

from cardmaster import config

ENABLE_PROFILING = config.ENABLE_PROFILING

# Umbrales en milisegundos
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

LOGS_DIR = config.LOGS_DIR

PERFORMANCE_LOG = 'performance.log'
SLOW_ROUTES_LOG = 'slow_routes.log'
SLOW_FUNCTIONS_LOG = 'slow_functions.log'

SEPARATOR = '─' * 40

# Mapeo de rutas a nombres legibles (para logs más humanos)
ROUTE_NAMES = {
    # Autenticación
    'POST /login': 'Iniciar sesión',
    'POST /logout': 'Cerrar sesión',
    'GET /api/session': 'Ver sesión',

    # Dashboard
    'GET /api/dashboard': 'Ver panel principal',

    # Transacciones
    'GET /api/transactions': 'Ver transacciones',
    'POST /api/transactions': 'Crear transacción',
    'PUT /api/transactions/<tx_id>': 'Editar transacción',
    'DELETE /api/transactions/<tx_id>': 'Eliminar transacción',
    'GET /api/transactions/export': 'Exportar transacciones CSV',
    'GET /api/fees/preview': 'Calcular comisiones',
    'GET /api/suggestions': 'Ver sugerencias del formulario',

    # Clientes
    'GET /api/customers': 'Ver clientes',
    'POST /api/customers': 'Crear cliente',
    'PUT /api/customers/<customer_id>': 'Editar cliente',
    'DELETE /api/customers/<customer_id>': 'Eliminar cliente',

    # Tareas
    'GET /api/tasks': 'Ver tareas',
    'POST /api/tasks': 'Crear tarea',
    'PUT /api/tasks/<task_id>': 'Editar tarea',
    'POST /api/tasks/<task_id>/status': 'Cambiar estado de tarea',
    'POST /api/tasks/<task_id>/comments': 'Comentar tarea',

    # Notificaciones
    'GET /api/notifications': 'Ver notificaciones',
    'POST /api/notifications/<notification_id>/read': 'Abrir notificación',

    # Usuarios
    'GET /api/users': 'Ver usuarios',
    'POST /api/users': 'Crear usuario',
    'PUT /api/users/<user_id>': 'Editar usuario',
    'DELETE /api/users/<user_id>': 'Eliminar usuario',
    'PUT /api/profile': 'Editar perfil',

    # Configuración
    'GET /api/settings': 'Ver configuración',
    'POST /api/settings': 'Guardar configuración',
}


# ═══════════════════════════════════════════════════════════════════════════
# ESCRITURA
# ═══════════════════════════════════════════════════════════════════════════

_write_lock = threading.Lock()


def _severity(time_ms):
    """None si está bajo el umbral, 'WARNING' o 'CRITICAL' si no."""
    if time_ms >= THRESHOLD_CRITICAL:
        return 'CRITICAL'
    if time_ms >= THRESHOLD_WARNING:
        return 'WARNING'
    return None


def _format_entry(title, fields):
    """
    Arma una entrada de log:

        [TITULO] 2025-03-10 14:20:05
        Campo: valor
        ────────────────
    """
    lines = [f"[{title}] {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"]
    lines.extend(f"{label}: {value}" for label, value in fields)
    lines.append(SEPARATOR)
    return '\n'.join(lines) + '\n'


def _append(filename, entry):
    """Agrega una entrada al final del log."""
    path = os.path.join(LOGS_DIR, filename)
    try:
        with _write_lock:
            os.makedirs(LOGS_DIR, exist_ok=True)
            with open(path, 'a', encoding='utf-8') as f:
                f.write(entry)
    except OSError:
        pass  # Errores de escritura de logs se ignoran


def route_name(method, rule):
    """'PUT /api/tasks/<task_id>' -> 'Editar tarea' (o la ruta tal cual)."""
    key = f"{method} {rule}"
    return ROUTE_NAMES.get(key, key)


# ═══════════════════════════════════════════════════════════════════════════
# RUTAS (hooks de Flask)
# ═══════════════════════════════════════════════════════════════════════════

def record_request(method, path, rule, status, time_ms, user=None):
    """
    Registra una petición terminada.

    Args:
        method: GET, POST, etc.
        path: Ruta solicitada (/api/transactions/AB12CD34)
        rule: Regla de Flask (/api/transactions/<tx_id>)
        status: Código HTTP de la respuesta
        time_ms: Duración en milisegundos
        user: Username de la sesión, si hay
    """
    fields = [
        ('Acción', route_name(method, rule)),
        ('Usuario', user or 'anónimo'),
        ('Ruta', f"{method} {path}"),
        ('Estado', status),
        ('Tiempo', f"{time_ms:.0f} ms"),
    ]
    _append(PERFORMANCE_LOG, _format_entry('PERFORMANCE', fields))

    level = _severity(time_ms)
    if level:
        threshold = THRESHOLD_CRITICAL if level == 'CRITICAL' else THRESHOLD_WARNING
        fields[-1] = ('Tiempo', f"{time_ms:.0f} ms (umbral: {threshold} ms)")
        _append(SLOW_ROUTES_LOG, _format_entry(level, fields))


def init_profiling(app):
    """Registra los hooks before_request/after_request en la app Flask."""
    if not ENABLE_PROFILING:
        return

    from flask import g, request, session

    @app.before_request
    def _start_timer():
        g.profiling_start = time.perf_counter()

    @app.after_request
    def _log_request(response):
        start = g.pop('profiling_start', None)
        if start is None or request.path.startswith('/static'):
            return response

        rule = str(request.url_rule) if request.url_rule else request.path
        record_request(
            request.method,
            request.path,
            rule,
            response.status_code,
            (time.perf_counter() - start) * 1000,
            session.get('username')
        )
        return response


# ═══════════════════════════════════════════════════════════════════════════
# FUNCIONES (decorador)
# ═══════════════════════════════════════════════════════════════════════════

_call_counts = {}
_counts_lock = threading.Lock()


def profile_function(func=None, name=None):
    """
    Decorador que cuenta llamadas y registra las lentas.

    Uso:
        @profile_function(name="Guardar estado")
        def save(self, state):
            ...

    Con el profiling desactivado retorna la función sin envolver.
    """
    def decorator(fn):
        if not ENABLE_PROFILING:
            return fn

        label = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed = (time.perf_counter() - start) * 1000
                with _counts_lock:
                    _call_counts[label] = _call_counts.get(label, 0) + 1
                level = _severity(elapsed)
                if level:
                    _append(SLOW_FUNCTIONS_LOG, _format_entry(level, [
                        ('Función', label),
                        ('Tiempo', f"{elapsed:.0f} ms"),
                    ]))

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


def call_counts():
    """Copia de {nombre: llamadas} de las funciones perfiladas."""
    with _counts_lock:
        return dict(_call_counts)
