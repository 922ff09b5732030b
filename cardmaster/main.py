from flask import Flask, request, session, Response
from functools import wraps
import uuid

from cardmaster import config

# Sistema de profiling interno
from cardmaster.performance_logger import init_profiling

# ═══════════════════════════════════════════════════════════════════════════
# CONTENEDOR DE DEPENDENCIAS - Servicios
# ═══════════════════════════════════════════════════════════════════════════
# Las rutas solo traducen request → servicio → JSON.
# Toda la lógica de permisos vive en services/.
# ═══════════════════════════════════════════════════════════════════════════
from cardmaster.app_container import get_container
from cardmaster.models import Customer, Task, Transaction, UserRole
from cardmaster.seed import suggest
from cardmaster.services import LOGIN_ERROR
from cardmaster.utils import parse_currency

app = Flask(__name__)
app.json.ensure_ascii = False

# ═══════════════════════════════════════════════════════════════════════════
# INICIALIZAR SISTEMA DE PROFILING
# ═══════════════════════════════════════════════════════════════════════════
# Mide rendimiento de rutas y funciones. Logs en config.LOGS_DIR
# Para desactivar: CARDMASTER_PROFILING=0
init_profiling(app)

# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN DE SESIONES
# ═══════════════════════════════════════════════════════════════════════════════
# Comando: export CARDMASTER_SECRET_KEY="tu_clave_secreta_muy_larga_y_aleatoria"
if config.PRODUCTION_MODE and not config.SECRET_KEY:
    print("[ADVERTENCIA] CARDMASTER_PRODUCTION activo sin CARDMASTER_SECRET_KEY definida")
    print("[ADVERTENCIA] Define la variable de entorno para mayor seguridad")

app.secret_key = config.SECRET_KEY or config.DEFAULT_SECRET
app.config.update(**config.SESSION_CONFIG)

# Imágenes (avatar, logo, fotos de tarjetas) viajan como data URI
app.config['MAX_CONTENT_LENGTH'] = 16 * 1024 * 1024  # 16 MB


# ═══════════════════════════════════════════════════════════════════════════════
# SESIÓN Y SEGURIDAD
# ═══════════════════════════════════════════════════════════════════════════════

def current_user():
    """Usuario logueado, recargado del estado (None si fue eliminado)."""
    user_id = session.get("user_id")
    if not user_id:
        return None
    return get_container().user_service.get_user(user_id)


def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if current_user() is None:
            return {"ok": False, "error": "Vui lòng đăng nhập"}, 401
        return f(*args, **kwargs)
    return wrapper


def role_required(*roles):
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            user = current_user()
            if user is None or user.role not in roles:
                return {"ok": False, "error": "Không có quyền thực hiện"}, 403
            return f(*args, **kwargs)
        return wrapper
    return deco


def generate_csrf_token():
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method in ('POST', 'PUT', 'DELETE'):
            token = session.get('csrf_token')
            form_token = (
                request.headers.get('X-CSRF-Token') or
                request.headers.get('X-CSRFToken')  # Common JS naming
            )
            if not form_token and request.is_json:
                json_data = request.get_json(silent=True) or {}
                form_token = json_data.get('csrf_token')

            if not token or not form_token or token != form_token:
                return {"ok": False, "error": "CSRF token inválido"}, 403
        return f(*args, **kwargs)
    return wrapper


@app.after_request
def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


def payload():
    data = request.get_json(silent=True) or {}
    data.pop('csrf_token', None)
    return data


def respond(result, ok_status=200):
    """Traduce el dict de resultado de un servicio a una respuesta HTTP."""
    if result.get('ok'):
        return _serialize(result), ok_status
    status = 403 if result.get('forbidden') else 400
    return {"ok": False, "error": result.get('error', 'Error')}, status


def _serialize(value):
    """Convierte entidades (to_dict) dentro de dicts/listas de resultado."""
    if hasattr(value, 'to_public_dict'):
        return value.to_public_dict()
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


def _to_int(value, default=0):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_float(value, default=0.0):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def transaction_payload():
    """Payload de transacción; los montos pueden venir formateados ('10.000.000 đ')."""
    data = payload()
    for key in ("amount", "withdrawAmount"):
        if isinstance(data.get(key), str):
            data[key] = parse_currency(data[key])
    return data


# ═══════════════════════════════════════════════════════════════════════════════
# AUTENTICACIÓN
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/session", methods=["GET"])
def session_info():
    """Token CSRF, usuario actual y datos del sitio (para el frontend)."""
    user = current_user()
    container = get_container()
    return {
        "ok": True,
        "csrf_token": generate_csrf_token(),
        "user": user.to_public_dict() if user else None,
        "site": container.user_service.get_site_settings(),
        "unread": container.notification_service.unread_count(user.username) if user else 0,
    }


@app.route("/login", methods=["POST"])
@verify_csrf
def login():
    data = payload()
    user = get_container().user_service.authenticate(
        data.get("username") or "",
        data.get("password") or ""
    )
    if user is None:
        return {"ok": False, "error": LOGIN_ERROR}, 401

    csrf_token = session.get('csrf_token')
    session.clear()
    session.permanent = True  # Sesión permanente (usa PERMANENT_SESSION_LIFETIME)
    session["user_id"] = user.id
    session["username"] = user.username
    session["csrf_token"] = csrf_token or uuid.uuid4().hex
    return {"ok": True, "user": user.to_public_dict()}


@app.route("/logout", methods=["POST"])
@login_required
@verify_csrf
def logout():
    session.clear()
    return {"ok": True}


# ═══════════════════════════════════════════════════════════════════════════════
# DASHBOARD
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/dashboard", methods=["GET"])
@login_required
def dashboard():
    month = request.args.get("month") or "all"
    data = get_container().stats_service.get_dashboard(current_user(), month)
    return {"ok": True, **data}


# ═══════════════════════════════════════════════════════════════════════════════
# TRANSACCIONES
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/transactions", methods=["GET"])
@login_required
def transactions_list():
    result = get_container().transaction_service.list_transactions(
        current_user(),
        search=request.args.get("q", ""),
        page=_to_int(request.args.get("page"), 1)
    )
    return {"ok": True, **_serialize(result)}


@app.route("/api/transactions", methods=["POST"])
@login_required
@verify_csrf
def transactions_create():
    container = get_container()
    user = current_user()
    data = transaction_payload()
    data.pop("id", None)

    # Fecha y vendedor los pone el servidor: hoy y el usuario logueado
    defaults = container.transaction_service.new_transaction(user).to_dict()
    transaction = Transaction.from_dict({
        **defaults, **data, "sale": defaults["sale"], "timestamp": defaults["timestamp"]
    })
    return respond(container.transaction_service.create(user, transaction), 201)


@app.route("/api/transactions/<tx_id>", methods=["PUT"])
@login_required
@verify_csrf
def transactions_update(tx_id):
    tx_service = get_container().transaction_service
    existing = tx_service.get_transaction(tx_id)
    if existing is None:
        return {"ok": False, "error": "Không tìm thấy giao dịch"}, 404

    # El vendedor no cambia al editar
    transaction = Transaction.from_dict({
        **existing.to_dict(), **transaction_payload(), "id": tx_id, "sale": existing.sale
    })
    return respond(tx_service.update(current_user(), transaction))


@app.route("/api/transactions/<tx_id>", methods=["DELETE"])
@login_required
@verify_csrf
def transactions_delete(tx_id):
    return respond(get_container().transaction_service.delete(current_user(), tx_id))


@app.route("/api/transactions/export", methods=["GET"])
@login_required
def transactions_export():
    result = get_container().export_service.export_range(
        current_user(),
        request.args.get("from", ""),
        request.args.get("to", "")
    )
    if not result['ok']:
        return {"ok": False, "error": result['error']}, 400
    return Response(
        result['content'].encode('utf-8'),
        mimetype='text/csv; charset=utf-8',
        headers={'Content-Disposition': f"attachment;filename={result['filename']}"}
    )


@app.route("/api/fees/preview", methods=["GET"])
@login_required
def fees_preview():
    fees = get_container().transaction_service.preview_fees(
        parse_currency(request.args.get("amount", "")),
        _to_float(request.args.get("posFeePercent"), 1.5),
        _to_float(request.args.get("customerFeePercent"), 2.0)
    )
    return {"ok": True, **fees}


@app.route("/api/suggestions", methods=["GET"])
@login_required
def form_suggestions():
    """Autocompletado del formulario: ?field=pos|banks|cardTypes|customers&q=..."""
    try:
        items = suggest(request.args.get("field", ""), request.args.get("q", ""))
    except KeyError:
        return {"ok": False, "error": "Trường gợi ý không hợp lệ"}, 400
    return {"ok": True, "items": items}



# ═══════════════════════════════════════════════════════════════════════════════
# CLIENTES (CRM)
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/customers", methods=["GET"])
@login_required
def customers_list():
    customer_service = get_container().customer_service
    if request.args.get("suggest"):
        customers = customer_service.suggestions(request.args.get("suggest"))
    else:
        customers = customer_service.search(request.args.get("q", ""))
    return {"ok": True, "items": [c.to_dict() for c in customers]}


@app.route("/api/customers", methods=["POST"])
@login_required
@verify_csrf
def customers_create():
    customer = Customer.from_dict(payload())
    result = get_container().customer_service.save_customer(current_user(), customer)
    return respond(result, 201 if result.get("created") else 200)


@app.route("/api/customers/<customer_id>", methods=["PUT"])
@login_required
@verify_csrf
@role_required(UserRole.ADMIN, UserRole.MANAGER)
def customers_update(customer_id):
    customer_service = get_container().customer_service
    existing = customer_service.state_service.get('customers', customer_id)
    if existing is None:
        return {"ok": False, "error": "Không tìm thấy khách hàng"}, 404

    customer = Customer.from_dict({**existing.to_dict(), **payload(), "id": customer_id})
    return respond(customer_service.update_customer(customer))


@app.route("/api/customers/<customer_id>", methods=["DELETE"])
@login_required
@verify_csrf
def customers_delete(customer_id):
    return respond(get_container().customer_service.delete_customer(current_user(), customer_id))


# ═══════════════════════════════════════════════════════════════════════════════
# TAREAS
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/tasks", methods=["GET"])
@login_required
def tasks_list():
    task_service = get_container().task_service
    return {
        "ok": True,
        "items": [t.to_dict() for t in task_service.tasks],
        "board": _serialize(task_service.board()),
    }


@app.route("/api/tasks", methods=["POST"])
@login_required
@verify_csrf
def tasks_create():
    data = payload()
    result = get_container().task_service.create_task(
        current_user(),
        title=data.get("title", ""),
        description=data.get("description", ""),
        assigned_to=data.get("assignedTo") or [],
        assigned_to_names=data.get("assignedToNames") or []
    )
    return respond(result, 201)


@app.route("/api/tasks/<task_id>", methods=["PUT"])
@login_required
@verify_csrf
def tasks_update(task_id):
    task_service = get_container().task_service
    existing = task_service.get_task(task_id)
    if existing is None:
        return {"ok": False, "error": "Không tìm thấy công việc"}, 404

    # Los comentarios solo se agregan por /comments
    data = {**existing.to_dict(), **payload(), "id": task_id}
    data["comments"] = [c.to_dict() for c in existing.comments]
    return respond(task_service.update_task(current_user(), Task.from_dict(data)))


@app.route("/api/tasks/<task_id>/status", methods=["POST"])
@login_required
@verify_csrf
def tasks_status(task_id):
    task_service = get_container().task_service
    if task_service.get_task(task_id) is None:
        return {"ok": False, "error": "Không tìm thấy công việc"}, 404
    return respond(task_service.change_status(current_user(), task_id, payload().get("status")))


@app.route("/api/tasks/<task_id>/comments", methods=["POST"])
@login_required
@verify_csrf
def tasks_comment(task_id):
    task_service = get_container().task_service
    if task_service.get_task(task_id) is None:
        return {"ok": False, "error": "Không tìm thấy công việc"}, 404
    return respond(task_service.add_comment(current_user(), task_id, payload().get("text", "")), 201)


# ═══════════════════════════════════════════════════════════════════════════════
# NOTIFICACIONES
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/notifications", methods=["GET"])
@login_required
def notifications_list():
    username = current_user().username
    notification_service = get_container().notification_service
    limit = None if request.args.get("all") else config.NOTIFICATION_PREVIEW_LIMIT
    return {
        "ok": True,
        "items": [n.to_dict() for n in notification_service.visible_for(username, limit)],
        "unread": notification_service.unread_count(username),
    }


@app.route("/api/notifications/<notification_id>/read", methods=["POST"])
@login_required
@verify_csrf
def notifications_read(notification_id):
    notification = get_container().notification_service.mark_read(notification_id)
    if notification is None:
        return {"ok": False, "error": "Không tìm thấy thông báo"}, 404
    return {"ok": True, "notification": notification.to_dict(), "taskId": notification.task_id}


# ═══════════════════════════════════════════════════════════════════════════════
# USUARIOS Y PERFIL
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/users", methods=["GET"])
@login_required
def users_list():
    users = get_container().user_service.users
    return {"ok": True, "items": [u.to_public_dict() for u in users]}


@app.route("/api/users", methods=["POST"])
@login_required
@verify_csrf
def users_create():
    data = payload()
    result = get_container().user_service.create_user(
        current_user(),
        username=data.get("username", ""),
        full_name=data.get("fullName", ""),
        role=data.get("role") or UserRole.USER,
        avatar=data.get("avatar"),
        password=data.get("password")
    )
    return respond(result, 201)


@app.route("/api/users/<user_id>", methods=["PUT"])
@login_required
@verify_csrf
def users_update(user_id):
    data = payload()
    user_service = get_container().user_service
    if user_service.get_user(user_id) is None:
        return {"ok": False, "error": "Không tìm thấy nhân viên"}, 404
    result = user_service.update_user(
        current_user(),
        user_id,
        full_name=data.get("fullName"),
        role=data.get("role"),
        avatar=data.get("avatar"),
        password=data.get("password")
    )
    return respond(result)


@app.route("/api/users/<user_id>", methods=["DELETE"])
@login_required
@verify_csrf
def users_delete(user_id):
    return respond(get_container().user_service.delete_user(current_user(), user_id))


@app.route("/api/profile", methods=["PUT"])
@login_required
@verify_csrf
def profile_update():
    data = payload()
    result = get_container().user_service.update_profile(
        current_user(),
        full_name=data.get("fullName"),
        avatar=data.get("avatar"),
        change_password=bool(data.get("changePassword")),
        new_password=data.get("newPassword", ""),
        confirm_password=data.get("confirmPassword", "")
    )
    return respond(result)


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN DEL SITIO
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/settings", methods=["GET"])
@login_required
def settings_get():
    return {"ok": True, **get_container().user_service.get_site_settings()}


@app.route("/api/settings", methods=["POST"])
@login_required
@verify_csrf
def settings_update():
    data = payload()
    result = get_container().user_service.update_site_settings(
        current_user(),
        site_name=data.get("siteName"),
        site_logo=data.get("siteLogo")
    )
    return respond(result)


if __name__ == "__main__":
    import os
    # En producción usar WSGI (gunicorn, waitress, etc.)
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'

    if not DEBUG:
        print(f"\n{'='*50}")
        print(f"  Servidor iniciado en http://{config.HOST}:{config.PORT}")
        print(f"  Acceso local: http://localhost:{config.PORT}")
        print(f"{'='*50}\n")

    app.run(host=config.HOST, port=config.PORT, debug=DEBUG)
