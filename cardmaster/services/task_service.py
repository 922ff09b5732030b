# ==============================================================================
# SERVICIO DE TAREAS
# ==============================================================================
# Tablero de tareas con estados TODO / IN_PROGRESS / DONE.
#
# PERMISOS:
# - ADMIN y MANAGER crean y editan cualquier tarea
# - USER solo cambia el estado o comenta tareas donde está asignado
#   (o que creó); cualquier otro intento se rechaza sin cambios
#
# Toda modificación pasa por _replace_task(), que dispara las notificaciones.
# Las tareas no se eliminan.
# ==============================================================================

from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from cardmaster.models import Task, TaskComment, TaskStatus, User
from cardmaster.services.notification_service import NotificationService
from cardmaster.services.state_service import StateService
from cardmaster.utils import get_current_date, get_current_datetime

# Asignación por defecto cuando el formulario no marca a nadie
DEFAULT_ASSIGNEE = 'user'
DEFAULT_ASSIGNEE_NAME = 'Nhân viên A'


def _forbidden() -> Dict[str, Any]:
    return {'ok': False, 'error': 'Không có quyền thực hiện', 'forbidden': True}


class TaskService:
    """
    Servicio para gestión de tareas.

    Responsabilidades:
    - Crear/editar tareas (ADMIN, MANAGER)
    - Cambios de estado y comentarios de los involucrados
    - Notificar vía NotificationService
    """

    def __init__(self, state_service: StateService,
                 notification_service: NotificationService):
        self.state_service = state_service
        self.notification_service = notification_service

    @property
    def tasks(self) -> List[Task]:
        return self.state_service.state.tasks

    def get_task(self, task_id: str) -> Optional[Task]:
        return self.state_service.get('tasks', task_id)

    def _display_names(self, usernames: Sequence[str]) -> List[str]:
        """Nombres mostrados en paralelo a los usernames asignados."""
        names = {u.username: u.full_name for u in self.state_service.state.users}
        return [names.get(username, username) for username in usernames]

    @staticmethod
    def can_manage(actor: User) -> bool:
        return actor.can_edit()

    def can_participate(self, actor: User, task: Task) -> bool:
        """Puede cambiar estado o comentar."""
        return actor.can_edit() or task.involves(actor.username)

    # =========================================================================
    # CREACIÓN
    # =========================================================================

    def create_task(
        self,
        actor: User,
        title: str,
        description: str = '',
        assigned_to: Sequence[str] = None,
        assigned_to_names: Sequence[str] = None
    ) -> Dict[str, Any]:
        """
        Crea una tarea en estado TODO y avisa a cada asignado.

        Args:
            actor: Usuario que crea (ADMIN o MANAGER)
            title: Título
            description: Descripción
            assigned_to: Usernames; vacío = DEFAULT_ASSIGNEE
            assigned_to_names: Nombres mostrados (se resuelven si faltan)

        Returns:
            Dict {'ok': True, 'task': Task, 'notifications': [...]}
        """
        if not self.can_manage(actor):
            return _forbidden()

        title = (title or '').strip()
        if not title:
            return {'ok': False, 'error': 'Vui lòng nhập tiêu đề công việc'}

        assignees = list(dict.fromkeys(assigned_to or []))
        if assignees:
            names = list(assigned_to_names or []) or self._display_names(assignees)
        else:
            assignees = [DEFAULT_ASSIGNEE]
            names = [DEFAULT_ASSIGNEE_NAME]

        task = Task(
            title=title,
            description=description or '',
            assigned_to=assignees,
            assigned_to_names=names,
            created_by=actor.username,
            created_by_name=actor.full_name,
            created_at=get_current_date(),
            status=TaskStatus.TODO,
            comments=[]
        )

        with self.state_service.lock:
            self.state_service.add('tasks', task)
            notifications = self.notification_service.task_created(task)

        return {'ok': True, 'task': task, 'notifications': notifications}

    # =========================================================================
    # ACTUALIZACIÓN
    # =========================================================================

    def _replace_task(self, old_task: Task, new_task: Task) -> Dict[str, Any]:
        """Guarda la tarea y dispara los avisos de actualización."""
        with self.state_service.lock:
            self.state_service.update('tasks', new_task)
            notifications = self.notification_service.task_updated(old_task, new_task)
        return {'ok': True, 'task': new_task, 'notifications': notifications}

    def update_task(self, actor: User, updated: Task) -> Dict[str, Any]:
        """
        Reemplaza una tarea completa.

        Un USER involucrado solo puede cambiar el estado y agregar comentarios;
        si cambia cualquier otro campo se rechaza.
        """
        old_task = self.get_task(updated.id)
        if old_task is None:
            return {'ok': False, 'error': 'Không tìm thấy công việc'}

        if not self.can_manage(actor):
            kept_comments = updated.comments[:len(old_task.comments)] == old_task.comments
            only_progress = kept_comments and replace(
                updated, status=old_task.status, comments=old_task.comments
            ) == old_task
            if not (only_progress and old_task.involves(actor.username)):
                return _forbidden()

        return self._replace_task(old_task, updated)

    def edit_task(
        self,
        actor: User,
        task_id: str,
        title: str,
        description: str,
        assigned_to: Sequence[str],
        assigned_to_names: Sequence[str] = None
    ) -> Dict[str, Any]:
        """Edita título, descripción y asignados (ADMIN o MANAGER)."""
        if not self.can_manage(actor):
            return _forbidden()

        task = self.get_task(task_id)
        if task is None:
            return {'ok': False, 'error': 'Không tìm thấy công việc'}

        assignees = list(dict.fromkeys(assigned_to or [])) or list(task.assigned_to)
        names = list(assigned_to_names or []) or self._display_names(assignees)
        updated = replace(
            task,
            title=(title or task.title).strip(),
            description=description if description is not None else task.description,
            assigned_to=assignees,
            assigned_to_names=names
        )
        return self._replace_task(task, updated)

    def change_status(self, actor: User, task_id: str, status) -> Dict[str, Any]:
        """
        Mueve la tarea a otra columna.

        Args:
            status: TaskStatus o su nombre ('TODO', 'IN_PROGRESS', 'DONE')
        """
        task = self.get_task(task_id)
        if task is None:
            return {'ok': False, 'error': 'Không tìm thấy công việc'}
        if not self.can_participate(actor, task):
            return _forbidden()

        try:
            new_status = TaskStatus(status)
        except ValueError:
            return {'ok': False, 'error': f'Trạng thái không hợp lệ: {status}'}

        return self._replace_task(task, replace(task, status=new_status))

    # =========================================================================
    # COMENTARIOS
    # =========================================================================

    def add_comment(self, actor: User, task_id: str, text: str) -> Dict[str, Any]:
        """
        Agrega un comentario al final de la tarea.

        Se emiten los avisos de "actualización" de la tarea y además los de
        comentario para asignados/creador distintos del autor.
        """
        task = self.get_task(task_id)
        if task is None:
            return {'ok': False, 'error': 'Không tìm thấy công việc'}
        if not self.can_participate(actor, task):
            return _forbidden()
        if not (text or '').strip():
            return {'ok': False, 'error': 'Nội dung bình luận trống'}

        comment = TaskComment(
            author=actor.username,
            author_name=actor.full_name,
            text=text,
            timestamp=get_current_datetime()
        )
        updated = replace(task, comments=list(task.comments) + [comment])

        with self.state_service.lock:
            result = self._replace_task(task, updated)
            comment_notifications = self.notification_service.comment_added(
                task, actor.username, actor.full_name
            )

        result['comment'] = comment
        result['notifications'] = result['notifications'] + comment_notifications
        return result

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def board(self) -> Dict[str, List[Task]]:
        """Tareas agrupadas por columna."""
        columns = {status.value: [] for status in TaskStatus}
        for task in self.tasks:
            columns[task.status.value].append(task)
        return columns
