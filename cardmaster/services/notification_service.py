# ==============================================================================
# SERVICIO DE NOTIFICACIONES
# ==============================================================================
# Genera avisos cuando cambian las tareas.
#
# REGLAS:
# - Tarea creada              → un aviso por asignado
# - Tarea editada sin cambio
#   de estado                 → un aviso por asignado
# - Cambio de estado          → UN aviso broadcast (sin target_user, lo ven todos)
# - Comentario                → asignados - autor (+ creador si no es el autor)
#
# Un aviso es visible para un usuario si va dirigido a él o es broadcast.
# ==============================================================================

from typing import Iterable, List, Optional

from cardmaster.models import Notification, Task
from cardmaster.services.state_service import StateService
from cardmaster.utils import get_current_date


class NotificationService:
    """
    Despachador de notificaciones.

    Las notificaciones solo se crean y se marcan como leídas;
    nunca se eliminan.
    """

    def __init__(self, state_service: StateService):
        self.state_service = state_service

    @property
    def notifications(self) -> List[Notification]:
        return self.state_service.state.notifications

    # =========================================================================
    # DESPACHO
    # =========================================================================

    def notify_assignees(self, message: str, task_id: str,
                         usernames: Iterable[str]) -> List[Notification]:
        """
        Crea una notificación sin leer por cada usuario.

        Args:
            message: Texto del aviso
            task_id: Tarea relacionada
            usernames: Destinatarios (uno por notificación)

        Returns:
            Notificaciones creadas (mismo orden que usernames)
        """
        timestamp = get_current_date()
        created = [
            Notification(
                message=message,
                timestamp=timestamp,
                read=False,
                task_id=task_id,
                target_user=username
            )
            for username in usernames
        ]
        if created:
            self.state_service.add('notifications', *created)
        return created

    def broadcast(self, message: str, task_id: Optional[str] = None) -> Notification:
        """Crea un aviso visible para todos los usuarios."""
        notification = Notification(
            message=message,
            timestamp=get_current_date(),
            read=False,
            task_id=task_id
        )
        self.state_service.add('notifications', notification)
        return notification

    # -------------------------------------------------------------------------
    # Eventos de tareas
    # -------------------------------------------------------------------------

    def task_created(self, task: Task) -> List[Notification]:
        return self.notify_assignees(
            f"Bạn được giao công việc mới: {task.title}",
            task.id,
            task.assigned_to
        )

    def task_updated(self, old_task: Optional[Task], new_task: Task) -> List[Notification]:
        """
        Avisos tras reemplazar una tarea.

        Si el estado cambió se emite un solo broadcast; si no, uno por asignado.
        """
        if old_task is not None and old_task.status != new_task.status:
            return [self.broadcast(
                f'Công việc "{new_task.title}" đã chuyển sang: {new_task.status.value}',
                new_task.id
            )]
        return self.notify_assignees(
            f'Công việc "{new_task.title}" có cập nhật mới.',
            new_task.id,
            new_task.assigned_to
        )

    def comment_added(self, task: Task, author: str, author_name: str) -> List[Notification]:
        """Avisa a los asignados (menos el autor) y al creador si no es el autor."""
        recipients = [u for u in task.assigned_to if u != author]
        if task.created_by != author:
            recipients.append(task.created_by)
        # dict.fromkeys elimina duplicados conservando el orden
        return self.notify_assignees(
            f'{author_name} đã bình luận trong "{task.title}"',
            task.id,
            list(dict.fromkeys(recipients))
        )

    # =========================================================================
    # LECTURA
    # =========================================================================

    def mark_read(self, notification_id: str) -> Optional[Notification]:
        """
        Marca UNA notificación como leída.

        Returns:
            La notificación actualizada (su task_id indica qué tarea abrir),
            o None si no existe
        """
        with self.state_service.lock:
            notification = self.state_service.get('notifications', notification_id)
            if notification is None:
                return None
            updated = Notification(
                id=notification.id,
                message=notification.message,
                timestamp=notification.timestamp,
                read=True,
                task_id=notification.task_id,
                target_user=notification.target_user
            )
            self.state_service.update('notifications', updated)
            return updated

    def visible_for(self, username: str, limit: Optional[int] = None) -> List[Notification]:
        """Notificaciones dirigidas al usuario o broadcast, más reciente primero."""
        visible = [n for n in self.notifications if n.is_visible_to(username)]
        return visible[:limit] if limit else visible

    def unread_count(self, username: str) -> int:
        """Contador de la campana: sin leer y dirigidas al usuario o broadcast."""
        return sum(1 for n in self.notifications if not n.read and n.is_visible_to(username))
