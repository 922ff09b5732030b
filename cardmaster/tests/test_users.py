# -*- coding: utf-8 -*-
"""
Tests de autenticación y gestión de usuarios
"""
import json

from werkzeug.security import check_password_hash

from cardmaster.models import UserRole
from cardmaster.utils import DEFAULT_AVATAR


def test_seed_login_with_plaintext_passwords(user_service):
    user = user_service.authenticate('admin', 'admin')
    assert user is not None
    assert user.role == UserRole.ADMIN


def test_login_lowercases_username(user_service):
    assert user_service.authenticate('ADMIN', 'admin').username == 'admin'


def test_login_failures_return_none(user_service):
    assert user_service.authenticate('admin', 'wrong') is None
    assert user_service.authenticate('nobody', 'admin') is None
    assert user_service.authenticate('', '') is None


def test_migrate_passwords_to_hash(user_service, store):
    result = user_service.migrate_passwords_to_hash()
    assert result['migrated_count'] == 3

    for user in user_service.users:
        assert user_service.is_password_hashed(user.password)
    assert user_service.authenticate('manager', 'manager') is not None
    stored = json.loads(store.get('users'))
    assert all(u['password'].startswith(('pbkdf2:', 'scrypt:')) for u in stored)

    # Segunda ejecución no cambia nada
    assert user_service.migrate_passwords_to_hash()['migrated_count'] == 0


def test_create_user_normalizes_and_defaults(user_service, admin):
    result = user_service.create_user(admin, ' Nhan Vien C ', full_name='Nhân viên C')

    assert result['ok'] is True
    user = result['user']
    assert user.username == 'nhanvienc'
    assert user.role == UserRole.USER
    assert user.avatar == DEFAULT_AVATAR
    assert check_password_hash(user.password, '123456')
    # Se agrega al final
    assert user_service.users[-1].id == user.id
    assert user_service.authenticate('nhanvienc', '123456') is not None


def test_duplicate_username(user_service, admin):
    result = user_service.create_user(admin, 'Admin')
    assert result == {'ok': False, 'error': 'Username đã tồn tại!'}


def test_manager_cannot_create_admin(user_service, manager):
    result = user_service.create_user(manager, 'boss', role='ADMIN')
    assert result['forbidden'] is True
    assert user_service.create_user(manager, 'helper', role='MANAGER')['ok'] is True


def test_user_cannot_manage_users(user_service, staff):
    assert user_service.create_user(staff, 'x')['forbidden'] is True
    assert user_service.update_user(staff, '1', full_name='hack')['forbidden'] is True


def test_manager_cannot_change_other_password(user_service, manager, staff):
    old_password = user_service.get_user(staff.id).password

    result = user_service.update_user(manager, staff.id, full_name='Nhân viên A2', password='nuevo')

    assert result['ok'] is True
    updated = user_service.get_user(staff.id)
    assert updated.full_name == 'Nhân viên A2'
    assert updated.password == old_password


def test_manager_role_limits(user_service, manager, staff, admin):
    assert user_service.update_user(manager, staff.id, role='ADMIN')['forbidden'] is True
    assert user_service.update_user(manager, admin.id, role='USER')['forbidden'] is True
    assert user_service.update_user(manager, manager.id, role='ADMIN')['forbidden'] is True
    assert user_service.get_user(admin.id).role == UserRole.ADMIN

    assert user_service.update_user(manager, staff.id, role='MANAGER')['forbidden'] is True
    assert user_service.get_user(staff.id).role == UserRole.USER

    # Repetir el rol actual no cuenta como cambio
    assert user_service.update_user(manager, staff.id, role='USER', full_name='A2')['ok'] is True
    assert user_service.update_user(manager, manager.id, role='USER')['ok'] is True
    assert user_service.get_user(manager.id).role == UserRole.USER

    assert user_service.update_user(admin, staff.id, role='MANAGER')['ok'] is True
    assert user_service.get_user(staff.id).role == UserRole.MANAGER


def test_admin_changes_password(user_service, admin, staff):
    user_service.update_user(admin, staff.id, password='clave-nueva')
    assert user_service.authenticate('user', 'clave-nueva') is not None
    assert user_service.authenticate('user', 'user') is None


def test_delete_user_rules(user_service, admin, manager, staff):
    assert user_service.delete_user(manager, staff.id)['forbidden'] is True
    assert user_service.delete_user(admin, admin.id)['ok'] is False
    assert user_service.get_user(admin.id) is not None

    assert user_service.delete_user(admin, staff.id)['ok'] is True
    assert user_service.get_user(staff.id) is None


def test_update_profile_password_validation(user_service, staff):
    result = user_service.update_profile(staff, change_password=True, new_password='')
    assert result['error'] == 'Vui lòng nhập mật khẩu mới!'

    result = user_service.update_profile(staff, change_password=True,
                                         new_password='abc', confirm_password='abd')
    assert result['error'] == 'Mật khẩu xác nhận không khớp!'

    result = user_service.update_profile(staff, full_name='Nhân viên Á', change_password=True,
                                         new_password='abc', confirm_password='abc')
    assert result['ok'] is True
    assert user_service.authenticate('user', 'abc').full_name == 'Nhân viên Á'


def test_update_profile_without_password_keeps_it(user_service, staff):
    user_service.update_profile(staff, avatar='data:image/png;base64,BBBB')
    user = user_service.authenticate('user', 'user')
    assert user.avatar == 'data:image/png;base64,BBBB'


def test_site_settings_admin_only(user_service, state_service, admin, manager):
    assert user_service.update_site_settings(manager, site_name='X')['forbidden'] is True
    assert state_service.state.site_name == 'CardMaster'

    result = user_service.update_site_settings(admin, site_name='Thẻ Pro')
    assert result['siteName'] == 'Thẻ Pro'
    assert state_service.state.site_logo == ''
