# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio.
# Diseñadas para ser independientes del mecanismo de persistencia.
#
# Los nombres de campo persistidos son camelCase (fullName, lastFourDigits...).
# ==============================================================================

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum

from cardmaster.utils import generate_id


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class UserRole(str, Enum):
    """Roles de usuario disponibles en el sistema."""
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    USER = "USER"


class TransactionType(str, Enum):
    """Tipos de transacción (el valor es la etiqueta persistida)."""
    WITHDRAW = "Rút"       # Retiro de efectivo
    RENEW = "Đáo"          # Renovación (đáo hạn) de tarjeta
    BOTH = "Rút/Đáo"


class TransactionStatus(str, Enum):
    """Estado de cobro de una transacción."""
    PAID = "Đã thanh toán"
    UNPAID = "Chưa thanh toán"


class TaskStatus(str, Enum):
    """Columnas del tablero de tareas."""
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


def _enum_value(enum_cls, raw, default):
    """Acepta tanto el valor persistido como el nombre del miembro."""
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(raw)
    except ValueError:
        try:
            return enum_cls[str(raw).upper()]
        except KeyError:
            return default


# ==============================================================================
# ENTIDADES DE USUARIO
# ==============================================================================

@dataclass
class User:
    """
    Representa un usuario del sistema.

    Attributes:
        id: Identificador de 8 caracteres
        username: Nombre de login (único, minúsculas, sin espacios)
        full_name: Nombre mostrado; también es el "sale" de sus transacciones
        role: Rol del usuario que define sus permisos
        avatar: Referencia de imagen (URL o data URI)
        password: Hash werkzeug, o texto plano heredado de datos antiguos
    """
    username: str
    full_name: str = ''
    role: UserRole = UserRole.USER
    avatar: Optional[str] = None
    password: str = ''
    id: str = field(default_factory=generate_id)

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def can_edit(self) -> bool:
        """ADMIN y MANAGER editan transacciones, clientes y tareas."""
        return self.role in (UserRole.ADMIN, UserRole.MANAGER)

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        d = {
            'id': self.id,
            'username': self.username,
            'fullName': self.full_name,
            'role': self.role.value,
            'password': self.password,
        }
        if self.avatar is not None:
            d['avatar'] = self.avatar
        return d

    def to_public_dict(self) -> Dict[str, Any]:
        """Igual que to_dict() pero sin la contraseña (para respuestas HTTP)."""
        d = self.to_dict()
        d.pop('password', None)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        """Crea instancia desde diccionario."""
        return cls(
            id=data.get('id') or generate_id(),
            username=data.get('username', ''),
            full_name=data.get('fullName', ''),
            role=_enum_value(UserRole, data.get('role', 'USER'), UserRole.USER),
            avatar=data.get('avatar'),
            password=data.get('password', '') or ''
        )


# ==============================================================================
# ENTIDADES DE CLIENTES (CRM)
# ==============================================================================

@dataclass
class Customer:
    """
    Cliente titular de una tarjeta.

    La identidad para deduplicar es (name, bank, card_type, last_four_digits),
    ver CustomerService.find_match().
    """
    name: str
    bank: str
    card_type: str
    last_four_digits: str
    is_holding_card: bool = False
    id_card_images: List[str] = field(default_factory=list)
    card_images: List[str] = field(default_factory=list)
    id: str = field(default_factory=generate_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'bank': self.bank,
            'cardType': self.card_type,
            'lastFourDigits': self.last_four_digits,
            'isHoldingCard': self.is_holding_card,
            'idCardImages': list(self.id_card_images),
            'cardImages': list(self.card_images),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Customer':
        return cls(
            id=data.get('id') or generate_id(),
            name=data.get('name', ''),
            bank=data.get('bank', ''),
            card_type=data.get('cardType', ''),
            last_four_digits=str(data.get('lastFourDigits', '')),
            is_holding_card=bool(data.get('isHoldingCard', False)),
            id_card_images=list(data.get('idCardImages') or []),
            card_images=list(data.get('cardImages') or [])
        )


# ==============================================================================
# ENTIDADES DE TRANSACCIONES
# ==============================================================================

@dataclass
class Transaction:
    """
    Transacción de retiro/renovación con tarjeta.

    Attributes:
        timestamp: Fecha DD/MM/YYYY
        sale: Nombre mostrado del empleado que originó la transacción
        amount: Monto en VND (entero)
        withdraw_amount: Monto retirado realmente
        pos: Etiqueta libre del terminal POS
        pos_fee_percent / customer_fee_percent: Porcentajes de comisión
        pos_cost / customer_charge / profit: Derivados, ver fee_service
    """
    customer_name: str
    bank: str
    card_type: str
    last_four_digits: str
    amount: int = 0
    withdraw_amount: int = 0
    pos: str = ''
    pos_fee_percent: float = 1.5
    customer_fee_percent: float = 2.0
    pos_cost: int = 0
    customer_charge: int = 0
    profit: int = 0
    type: TransactionType = TransactionType.WITHDRAW
    status: TransactionStatus = TransactionStatus.UNPAID
    timestamp: str = ''
    sale: str = ''
    deposit_images: List[str] = field(default_factory=list)
    withdraw_images: List[str] = field(default_factory=list)
    id: str = field(default_factory=generate_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'sale': self.sale,
            'customerName': self.customer_name,
            'bank': self.bank,
            'cardType': self.card_type,
            'lastFourDigits': self.last_four_digits,
            'type': self.type.value,
            'amount': self.amount,
            'withdrawAmount': self.withdraw_amount,
            'pos': self.pos,
            'posFeePercent': self.pos_fee_percent,
            'posCost': self.pos_cost,
            'customerFeePercent': self.customer_fee_percent,
            'customerCharge': self.customer_charge,
            'profit': self.profit,
            'status': self.status.value,
            'depositImages': list(self.deposit_images),
            'withdrawImages': list(self.withdraw_images),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=data.get('id') or generate_id(),
            timestamp=data.get('timestamp', ''),
            sale=data.get('sale', ''),
            customer_name=data.get('customerName', ''),
            bank=data.get('bank', ''),
            card_type=data.get('cardType', ''),
            last_four_digits=str(data.get('lastFourDigits', '')),
            type=_enum_value(TransactionType, data.get('type'), TransactionType.WITHDRAW),
            amount=int(data.get('amount', 0) or 0),
            withdraw_amount=int(data.get('withdrawAmount', 0) or 0),
            pos=data.get('pos', ''),
            pos_fee_percent=float(data.get('posFeePercent', 0) or 0),
            pos_cost=int(data.get('posCost', 0) or 0),
            customer_fee_percent=float(data.get('customerFeePercent', 0) or 0),
            customer_charge=int(data.get('customerCharge', 0) or 0),
            profit=int(data.get('profit', 0) or 0),
            status=_enum_value(TransactionStatus, data.get('status'), TransactionStatus.UNPAID),
            deposit_images=list(data.get('depositImages') or []),
            withdraw_images=list(data.get('withdrawImages') or [])
        )


# ==============================================================================
# ENTIDADES DE TAREAS
# ==============================================================================

@dataclass(frozen=True)
class TaskComment:
    """Comentario de una tarea. Inmutable una vez agregado."""
    author: str
    author_name: str
    text: str
    timestamp: str
    id: str = field(default_factory=generate_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'author': self.author,
            'authorName': self.author_name,
            'text': self.text,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TaskComment':
        return cls(
            id=data.get('id') or generate_id(),
            author=data.get('author', ''),
            author_name=data.get('authorName', ''),
            text=data.get('text', ''),
            timestamp=data.get('timestamp', '')
        )


@dataclass
class Task:
    """
    Tarea asignada a uno o más usuarios.

    Attributes:
        assigned_to: Usernames asignados (nunca vacío)
        assigned_to_names: Nombres mostrados, en paralelo a assigned_to
        comments: Solo se agregan, nunca se editan ni eliminan
    """
    title: str
    description: str = ''
    assigned_to: List[str] = field(default_factory=list)
    assigned_to_names: List[str] = field(default_factory=list)
    created_by: str = ''
    created_by_name: str = ''
    created_at: str = ''
    status: TaskStatus = TaskStatus.TODO
    comments: List[TaskComment] = field(default_factory=list)
    id: str = field(default_factory=generate_id)

    def involves(self, username: str) -> bool:
        """True si el usuario está asignado o creó la tarea."""
        return username in self.assigned_to or username == self.created_by

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'assignedTo': list(self.assigned_to),
            'assignedToNames': list(self.assigned_to_names),
            'createdBy': self.created_by,
            'createdByName': self.created_by_name,
            'createdAt': self.created_at,
            'status': self.status.value,
            'comments': [c.to_dict() for c in self.comments],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Task':
        return cls(
            id=data.get('id') or generate_id(),
            title=data.get('title', ''),
            description=data.get('description', ''),
            assigned_to=list(data.get('assignedTo') or []),
            assigned_to_names=list(data.get('assignedToNames') or []),
            created_by=data.get('createdBy', ''),
            created_by_name=data.get('createdByName', ''),
            created_at=data.get('createdAt', ''),
            status=_enum_value(TaskStatus, data.get('status'), TaskStatus.TODO),
            comments=[TaskComment.from_dict(c) for c in data.get('comments') or []]
        )


# ==============================================================================
# ENTIDADES DE NOTIFICACIÓN
# ==============================================================================

@dataclass
class Notification:
    """
    Aviso para un usuario concreto, o para todos si target_user es None.

    Solo cambia `read` (al hacer clic); nunca se elimina.
    """
    message: str
    timestamp: str
    read: bool = False
    task_id: Optional[str] = None
    target_user: Optional[str] = None
    id: str = field(default_factory=generate_id)

    @property
    def is_broadcast(self) -> bool:
        return not self.target_user

    def is_visible_to(self, username: str) -> bool:
        return self.is_broadcast or self.target_user == username

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'id': self.id,
            'message': self.message,
            'timestamp': self.timestamp,
            'read': self.read,
        }
        if self.task_id is not None:
            d['taskId'] = self.task_id
        if self.target_user is not None:
            d['targetUser'] = self.target_user
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Notification':
        return cls(
            id=data.get('id') or generate_id(),
            message=data.get('message', ''),
            timestamp=data.get('timestamp', ''),
            read=bool(data.get('read', False)),
            task_id=data.get('taskId'),
            target_user=data.get('targetUser')
        )
