# ==============================================================================
# CardMaster - Gestión de transacciones de tarjetas, clientes y tareas
# ==============================================================================
# Punto de entrada HTTP: cardmaster.main:app (o wsgi.py en la raíz)
# ==============================================================================

__version__ = '1.0.0'
