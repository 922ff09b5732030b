# ==============================================================================
# SERVICIO DE CLIENTES (CRM)
# ==============================================================================
# Registro de clientes y sincronización desde transacciones.
#
# SINCRONIZACIÓN:
# Tras crear o editar una transacción se busca un cliente con el mismo
# (nombre, banco, tipo de tarjeta) sin distinguir mayúsculas y los mismos
# 4 últimos dígitos. Si no existe se crea; si existe NO se toca
# (is_holding_card e imágenes nunca se sobrescriben desde transacciones).
# ==============================================================================

from typing import Any, Dict, List, Optional

from cardmaster.models import Customer, Transaction, User, UserRole
from cardmaster.services.state_service import StateService


class CustomerService:
    """
    Servicio para gestión de clientes.

    Responsabilidades:
    - Materializar clientes desde transacciones (solo agrega)
    - CRUD manual de clientes
    - Búsqueda y sugerencias para el formulario de transacción
    """

    def __init__(self, state_service: StateService):
        self.state_service = state_service

    @property
    def customers(self) -> List[Customer]:
        return self.state_service.state.customers

    # =========================================================================
    # SINCRONIZACIÓN DESDE TRANSACCIONES
    # =========================================================================

    def find_match(self, name: str, bank: str, card_type: str,
                   last_four_digits: str) -> Optional[Customer]:
        """
        Busca un cliente por la clave de deduplicación.

        Returns:
            Cliente existente o None
        """
        name, bank, card_type = name.lower(), bank.lower(), card_type.lower()
        for customer in self.customers:
            if (customer.name.lower() == name
                    and customer.bank.lower() == bank
                    and customer.card_type.lower() == card_type
                    and customer.last_four_digits == last_four_digits):
                return customer
        return None

    def sync_from_transaction(self, transaction: Transaction) -> Optional[Customer]:
        """
        Crea el cliente de una transacción si todavía no existe.

        Args:
            transaction: Transacción ya guardada

        Returns:
            El cliente nuevo, o None si ya existía
        """
        with self.state_service.lock:
            existing = self.find_match(
                transaction.customer_name,
                transaction.bank,
                transaction.card_type,
                transaction.last_four_digits
            )
            if existing:
                return None

            customer = Customer(
                name=transaction.customer_name,
                bank=transaction.bank,
                card_type=transaction.card_type,
                last_four_digits=transaction.last_four_digits,
                is_holding_card=False
            )
            self.state_service.add('customers', customer)
            return customer

    # =========================================================================
    # CRUD MANUAL
    # =========================================================================

    def save_customer(self, actor: User, customer: Customer) -> Dict[str, Any]:
        """
        Guarda un cliente desde el formulario CRM: edita si el id existe,
        si no lo agrega al inicio.

        Cualquier rol agrega clientes; editar uno existente es de ADMIN y MANAGER.
        """
        with self.state_service.lock:
            if self.state_service.get('customers', customer.id):
                if not actor.can_edit():
                    return {'ok': False, 'error': 'Không có quyền sửa khách hàng',
                            'forbidden': True}
                self.state_service.update('customers', customer)
                return {'ok': True, 'created': False, 'customer': customer}
            return {**self.add_customer(customer), 'created': True}

    def add_customer(self, customer: Customer) -> Dict[str, Any]:
        self.state_service.add('customers', customer)
        return {'ok': True, 'customer': customer}

    def update_customer(self, customer: Customer) -> Dict[str, Any]:
        """Reemplaza un cliente existente; sin efecto si el id no existe."""
        found = self.state_service.get('customers', customer.id) is not None
        self.state_service.update('customers', customer)
        return {'ok': found, 'customer': customer}

    def delete_customer(self, actor: User, customer_id: str) -> Dict[str, Any]:
        """
        Elimina un cliente. Solo ADMIN.

        Returns:
            {'ok': False, 'error': ...} si no tiene permiso (sin cambios)
        """
        if actor.role != UserRole.ADMIN:
            return {'ok': False, 'error': 'Không có quyền xóa khách hàng', 'forbidden': True}
        self.state_service.delete('customers', customer_id)
        return {'ok': True}

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def search(self, query: str = '') -> List[Customer]:
        """Filtra por nombre, banco o tipo de tarjeta (contiene, sin mayúsculas)."""
        q = (query or '').lower()
        return [
            c for c in self.customers
            if q in c.name.lower() or q in c.bank.lower() or q in c.card_type.lower()
        ]

    def suggestions(self, query: str) -> List[Customer]:
        """Sugerencias para el formulario de transacción (nombre o banco)."""
        q = (query or '').lower()
        if not q:
            return []
        return [c for c in self.customers if q in c.name.lower() or q in c.bank.lower()]
