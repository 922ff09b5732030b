# ==============================================================================
# WSGI Entry Point - Para Gunicorn / Producción
# ==============================================================================
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/           <- Directorio de trabajo
#   ├── wsgi.py          <- Este archivo
#   ├── pyproject.toml
#   └── cardmaster/      <- Paquete Python
#       ├── main.py
#       ├── services/
#       └── repositories/
#
# Variables de entorno: ver cardmaster/config.py
# ==============================================================================

from cardmaster.main import app

if __name__ == '__main__':
    from cardmaster import config
    app.run(debug=True, host=config.HOST, port=config.PORT)
