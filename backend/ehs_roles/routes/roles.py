from __future__ import annotations
from flask import Blueprint, request, abort
from ehs_roles import get_role_repository
from ehs_roles.decorators.audit import audit_log
from ehs_roles.decorators.auth import current_actor
from ehs_roles.routes.catalog import permissions_from_payload, view_from_args
from ehs_roles.services.errors import RoleNotFoundError, RolePersistenceError
from ehs_roles.services.matrix import MatrixView
from ehs_roles.services.roles import CustomRole
from ehs_roles.utils.listing import list_response
from ehs_roles.utils.validation import validate_role_input

roles_bp = Blueprint('roles', __name__)


def _role_json(role: CustomRole, view: MatrixView):
    return {
        'id': role.id,
        'name': role.name,
        'is_system_role': role.is_system_role,
        'enabled_count': view.visible_enabled_count(role.permissions),
        'total_enabled': role.permissions.enabled_count(),
        'created_at': role.created_at,
        'updated_at': role.updated_at,
        'created_by': role.created_by,
        'updated_by': role.updated_by,
    }


def _get_or_404(role_id: str) -> CustomRole:
    role = get_role_repository().get(role_id)
    if role is None:
        abort(404, description='Role not found')
    return role


def _assert_editable(role: CustomRole, verb: str):
    if role.is_system_role:
        abort(403, description=f'System roles cannot be {verb}; duplicate them to create a customizable version')


def _persisting(operation, *args, **kwargs):
    """Run a repository mutation; returns (result, persisted)."""
    try:
        return operation(*args, **kwargs), True
    except RolePersistenceError as e:
        return e.result, False


def _snapshot(role_id: str):
    role = get_role_repository().get(role_id)
    if role is None:
        return {}
    return {'name': role.name, 'total_enabled': role.permissions.enabled_count()}


def _granted_ids(data, _kwargs):
    role = get_role_repository().get(data.get('id'))
    return role.permissions.action_ids() if role else []


@roles_bp.get('/roles')
def list_roles():
    view = view_from_args(request.args.get('scope'))
    query = request.args.get('q', '')
    rows = [_role_json(r, view) for r in get_role_repository().search(query)]
    return list_response(rows, variant=f'{view.scope.value}|{query}')


@roles_bp.get('/roles/<role_id>')
def get_role(role_id: str):
    role = _get_or_404(role_id)
    view = view_from_args(request.args.get('scope'), request.args.get('granularity'))
    return {
        **_role_json(role, view),
        'permissions': role.permissions.to_dict(),
        'matrix': view.render(role.permissions),
    }


@roles_bp.post('/roles')
@audit_log('ROLE.CREATE', entity_id_key='id', meta_keys=['name', 'total_enabled'], permissions=_granted_ids)
def create_role():
    data = request.json or {}
    repo = get_role_repository()
    state = permissions_from_payload(data.get('permissions'))
    name = validate_role_input(repo, data.get('name'), state)
    role_id, persisted = _persisting(repo.create, name, state, created_by=current_actor())
    view = view_from_args(data.get('scope'))
    return {**_role_json(repo.get(role_id), view), 'persisted': persisted}, 201


@roles_bp.put('/roles/<role_id>')
@audit_log(
    'ROLE.UPDATE',
    entity_id_arg='role_id',
    meta_keys=['name'],
    diff_keys=['name', 'total_enabled'],
    before=lambda kw: _snapshot(kw.get('role_id')),
    permissions=_granted_ids,
)
def update_role(role_id: str):
    role = _get_or_404(role_id)
    _assert_editable(role, 'edited')
    data = request.json or {}
    repo = get_role_repository()
    state = permissions_from_payload(data.get('permissions'))
    name = validate_role_input(repo, data.get('name'), state, exclude_id=role.id)
    ok, persisted = _persisting(repo.update, role.id, name, state, updated_by=current_actor())
    if not ok:
        abort(409, description='Role could not be updated')
    view = view_from_args(data.get('scope'))
    return {**_role_json(repo.get(role.id), view), 'persisted': persisted}


@roles_bp.delete('/roles/<role_id>')
@audit_log('ROLE.DELETE', entity_id_key='id', meta_keys=['name'])
def delete_role(role_id: str):
    role = _get_or_404(role_id)
    _assert_editable(role, 'deleted')
    ok, persisted = _persisting(get_role_repository().delete, role.id)
    if not ok:
        abort(409, description='Role could not be deleted')
    return {'id': role.id, 'name': role.name, 'status': 'deleted', 'persisted': persisted}


@roles_bp.post('/roles/<role_id>/duplicate')
@audit_log(
    'ROLE.DUPLICATE',
    entity_id_key='id',
    permissions=_granted_ids,
    meta_builder=lambda data, kw: {'source_id': kw.get('role_id'), 'name': data.get('name')},
)
def duplicate_role(role_id: str):
    repo = get_role_repository()
    try:
        new_id, persisted = _persisting(repo.duplicate, role_id, created_by=current_actor())
    except RoleNotFoundError:
        abort(404, description='Role not found')
    view = view_from_args(request.args.get('scope'))
    return {**_role_json(repo.get(new_id), view), 'source_id': role_id, 'persisted': persisted}, 201
