# ==============================================================================
# SERVICIO DE USUARIOS
# ==============================================================================
# Centraliza autenticación, gestión de usuarios, perfil y ajustes del sitio.
#
# Toda la lógica de permisos está AQUÍ, no en las rutas.
#
# REGLAS DE ROLES:
# - ADMIN:   crea, edita y elimina cualquier usuario
# - MANAGER: crea usuarios (sin ADMIN) y edita usuarios, pero
#            * no cambia la contraseña de otro usuario
#            * no otorga ADMIN ni quita ADMIN a otro usuario
# - USER:    solo su propio perfil
# - Nadie puede eliminarse a sí mismo
#
# CONTRASEÑAS:
# Se guardan como hash werkzeug. Los valores en texto plano (semilla y datos
# antiguos) se aceptan en el login y migrate_passwords_to_hash() los convierte.
# ==============================================================================

import re
from dataclasses import replace
from typing import Any, Dict, List, Optional

from werkzeug.security import generate_password_hash, check_password_hash

from cardmaster.models import User, UserRole
from cardmaster.services.state_service import StateService
from cardmaster.utils import DEFAULT_AVATAR

DEFAULT_PASSWORD = '123456'

LOGIN_ERROR = 'Sai tài khoản hoặc mật khẩu!'


def normalize_username(username: str) -> str:
    """Minúsculas y sin espacios: ' Nguyen Van ' -> 'nguyenvan'."""
    return re.sub(r'\s+', '', username or '').lower()


class UserService:
    """
    Servicio para gestión de usuarios.

    Responsabilidades:
    - Autenticación (login)
    - CRUD de usuarios con restricciones de MANAGER
    - Perfil propio (nombre, avatar, contraseña)
    - Migración de contraseñas a hash
    - Nombre y logo del sitio (solo ADMIN)
    """

    def __init__(self, state_service: StateService):
        self.state_service = state_service

    @property
    def users(self) -> List[User]:
        return self.state_service.state.users

    def get_user(self, user_id: str) -> Optional[User]:
        return self.state_service.get('users', user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        for user in self.users:
            if user.username == username:
                return user
        return None

    def user_exists(self, username: str) -> bool:
        return self.get_by_username(username) is not None

    # =========================================================================
    # CONTRASEÑAS
    # =========================================================================

    def is_password_hashed(self, password_value: str) -> bool:
        """
        Verifica si una contraseña ya está hasheada.

        Returns:
            True si está hasheado (pbkdf2: o scrypt:)
        """
        return password_value.startswith('pbkdf2:') or password_value.startswith('scrypt:')

    def check_password(self, user: User, password: str) -> bool:
        stored = user.password or ''
        if self.is_password_hashed(stored):
            return check_password_hash(stored, password)
        # Texto plano (legacy)
        return stored == password

    def migrate_passwords_to_hash(self) -> Dict[str, Any]:
        """
        Migra todas las contraseñas en texto plano a hash seguro.

        Se llama al inicializar la app para que ninguna contraseña
        quede en texto plano en el almacén.

        Returns:
            Dict con información de migración
        """
        migrated_count = 0
        with self.state_service.lock:
            users = []
            for user in self.users:
                if user.password and not self.is_password_hashed(user.password):
                    user = replace(user, password=generate_password_hash(user.password))
                    migrated_count += 1
                users.append(user)

            if migrated_count > 0:
                self.state_service.commit(users=users)

        return {
            'ok': True,
            'migrated_count': migrated_count
        }

    # =========================================================================
    # AUTENTICACIÓN
    # =========================================================================

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """
        Autentica un usuario.

        Args:
            username: Nombre de usuario (se compara en minúsculas)
            password: Contraseña en texto plano

        Returns:
            User si es válido, None si no (el mensaje de error es genérico)
        """
        user = self.get_by_username((username or '').strip().lower())
        if not user:
            return None
        if not self.check_password(user, password or ''):
            return None
        return user

    # =========================================================================
    # CRUD DE USUARIOS
    # =========================================================================

    def create_user(
        self,
        actor: User,
        username: str,
        full_name: str = '',
        role=UserRole.USER,
        avatar: str = None,
        password: str = None
    ) -> Dict[str, Any]:
        """
        Crea un nuevo usuario.

        Args:
            actor: Usuario que crea (ADMIN o MANAGER)
            username: Se normaliza (minúsculas, sin espacios)
            full_name: Nombre mostrado
            role: Rol (MANAGER no puede crear ADMIN)
            avatar: Imagen; DEFAULT_AVATAR si falta
            password: Contraseña; DEFAULT_PASSWORD si falta

        Returns:
            Dict con resultado (ok, error, user)
        """
        if not actor.can_edit():
            return {'ok': False, 'error': 'Không có quyền quản lý nhân viên', 'forbidden': True}

        username = normalize_username(username)
        if not username:
            return {'ok': False, 'error': 'Vui lòng nhập username!'}

        try:
            role = UserRole(role) if role else UserRole.USER
        except ValueError:
            return {'ok': False, 'error': f'Vai trò không hợp lệ: {role}'}
        if role == UserRole.ADMIN and not actor.is_admin():
            return {'ok': False, 'error': 'Không có quyền cấp vai trò ADMIN', 'forbidden': True}

        with self.state_service.lock:
            if self.user_exists(username):
                return {'ok': False, 'error': 'Username đã tồn tại!'}

            user = User(
                username=username,
                full_name=full_name or '',
                role=role,
                avatar=avatar or DEFAULT_AVATAR,
                password=generate_password_hash(password or DEFAULT_PASSWORD)
            )
            self.state_service.add('users', user, newest_first=False)

        return {'ok': True, 'user': user}

    def update_user(
        self,
        actor: User,
        user_id: str,
        full_name: str = None,
        role=None,
        avatar: str = None,
        password: str = None
    ) -> Dict[str, Any]:
        """
        Edita un usuario desde la gestión de personal.

        Los campos en None se conservan; una contraseña vacía también.

        VALIDACIONES:
        1. Solo ADMIN o MANAGER
        2. MANAGER no cambia la contraseña de otro usuario (se ignora)
        3. MANAGER no asigna ADMIN ni modifica el rol de un ADMIN
        4. MANAGER solo cambia su propio rol

        Returns:
            Dict con resultado {'ok': bool, 'error': str opcional, 'user': User}
        """
        if not actor.can_edit():
            return {'ok': False, 'error': 'Không có quyền quản lý nhân viên', 'forbidden': True}

        with self.state_service.lock:
            target = self.get_user(user_id)
            if target is None:
                return {'ok': False, 'error': 'Không tìm thấy nhân viên'}

            try:
                new_role = UserRole(role) if role else target.role
            except ValueError:
                return {'ok': False, 'error': f'Vai trò không hợp lệ: {role}'}
            if not actor.is_admin() and new_role != target.role:
                if UserRole.ADMIN in (new_role, target.role):
                    return {'ok': False, 'error': 'Không có quyền thay đổi vai trò ADMIN',
                            'forbidden': True}
                if target.id != actor.id:
                    return {'ok': False, 'error': 'Không có quyền thay đổi vai trò của người khác',
                            'forbidden': True}

            new_password = target.password
            is_self = actor.id == target.id
            if password and (actor.is_admin() or is_self):
                new_password = generate_password_hash(password)

            updated = replace(
                target,
                full_name=target.full_name if full_name is None else full_name,
                role=new_role,
                avatar=avatar or target.avatar,
                password=new_password
            )
            self.state_service.update('users', updated)

        return {'ok': True, 'user': updated}

    def delete_user(self, actor: User, user_id: str) -> Dict[str, Any]:
        """
        Elimina un usuario.

        VALIDACIONES DE SEGURIDAD:
        1. Solo ADMIN
        2. No se puede auto-eliminar

        Returns:
            Dict con resultado {'ok': bool, 'error': str opcional}
        """
        if not actor.is_admin():
            return {'ok': False, 'error': 'Không có quyền xóa nhân viên', 'forbidden': True}

        if user_id == actor.id:
            return {'ok': False, 'error': 'Không thể tự xóa tài khoản của mình'}

        if self.get_user(user_id) is None:
            return {'ok': False, 'error': 'Không tìm thấy nhân viên'}

        self.state_service.delete('users', user_id)
        return {'ok': True}

    # =========================================================================
    # PERFIL PROPIO
    # =========================================================================

    def update_profile(
        self,
        actor: User,
        full_name: str = None,
        avatar: str = None,
        change_password: bool = False,
        new_password: str = '',
        confirm_password: str = ''
    ) -> Dict[str, Any]:
        """
        Actualiza el perfil del usuario logueado.

        Args:
            actor: Usuario logueado
            full_name: Nuevo nombre mostrado (None = sin cambio)
            avatar: Nueva imagen (None = sin cambio)
            change_password: True si se abrió la sección de contraseña
            new_password: Contraseña nueva (obligatoria si change_password)
            confirm_password: Debe coincidir con new_password

        Returns:
            Dict {'ok': bool, 'error': str opcional, 'user': User}
        """
        password = actor.password
        if change_password:
            if not new_password:
                return {'ok': False, 'error': 'Vui lòng nhập mật khẩu mới!'}
            if new_password != confirm_password:
                return {'ok': False, 'error': 'Mật khẩu xác nhận không khớp!'}
            password = generate_password_hash(new_password)

        with self.state_service.lock:
            current = self.get_user(actor.id) or actor
            updated = replace(
                current,
                full_name=current.full_name if full_name is None else full_name,
                avatar=current.avatar if avatar is None else avatar,
                password=password if change_password else current.password
            )
            self.state_service.update('users', updated)

        return {'ok': True, 'user': updated}

    # =========================================================================
    # AJUSTES DEL SITIO
    # =========================================================================

    def get_site_settings(self) -> Dict[str, str]:
        state = self.state_service.state
        return {'siteName': state.site_name, 'siteLogo': state.site_logo}

    def update_site_settings(
        self,
        actor: User,
        site_name: str = None,
        site_logo: str = None
    ) -> Dict[str, Any]:
        """Cambia nombre y/o logo del sitio. Solo ADMIN."""
        if not actor.is_admin():
            return {'ok': False, 'error': 'Không có quyền cài đặt website', 'forbidden': True}

        state = self.state_service.state
        self.state_service.update_site(
            state.site_name if site_name is None else site_name,
            state.site_logo if site_logo is None else site_logo
        )
        return {'ok': True, **self.get_site_settings()}
