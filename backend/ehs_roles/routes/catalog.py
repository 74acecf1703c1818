from __future__ import annotations
from flask import Blueprint, request, abort
from ehs_roles.constants.permissions import CATEGORY_LABELS
from ehs_roles.services.catalog import CATALOG
from ehs_roles.services.errors import UnknownLeafError
from ehs_roles.services.matrix import MatrixView
from ehs_roles.services.permission_state import PermissionState
from ehs_roles.services.selection import ActionNode, GlobalNode, node_from_payload

catalog_bp = Blueprint('catalog', __name__)


def view_from_args(scope=None, granularity=None) -> MatrixView:
    try:
        return MatrixView.from_args(scope, granularity)
    except ValueError as e:
        abort(400, description=str(e))


def permissions_from_payload(raw) -> PermissionState:
    try:
        return PermissionState.from_dict(raw or {})
    except ValueError as e:
        abort(400, description=str(e))


@catalog_bp.get('/catalog')
def get_catalog():
    view = view_from_args(request.args.get('scope'))
    modules = []
    for m in view.visible_modules():
        modules.append({
            'id': m.id,
            'name': m.name,
            'description': m.description,
            'advanced_only': m.advanced_only,
            'categories': CATALOG.categories_present(m),
            'entities': [
                {
                    'name': e.name,
                    'actions': [
                        {'id': a.id, 'key': a.key, 'label': a.label, 'description': a.description, 'category': a.category}
                        for a in e.actions
                    ],
                }
                for e in m.entities
            ],
        })
    return {
        'scope': view.scope.value,
        'categories': [{'id': c, 'label': label} for c, label in CATEGORY_LABELS.items()],
        'total_actions': view.visible_total(),
        'modules': modules,
    }


@catalog_bp.post('/matrix/toggle')
def toggle_matrix():
    """Stateless toggle: apply one toggle to the posted grants and return the new grants + view."""
    data = request.json or {}
    view = view_from_args(data.get('scope'), data.get('granularity'))
    state = permissions_from_payload(data.get('permissions'))
    node_raw = data.get('node') or {}
    try:
        node = node_from_payload(node_raw, view.include_advanced_only)
    except ValueError as e:
        abort(400, description=str(e))
    try:
        if node_raw.get('kind') == 'leaf' and isinstance(node, ActionNode):
            new_state = view.toggle_leaf(state, node.module, node.entity, node.action)
        elif isinstance(node, GlobalNode):
            new_state = view.toggle_all(state)
        else:
            new_state = view.toggle(state, node)
    except UnknownLeafError as e:
        abort(400, description=str(e))
    return {
        'permissions': new_state.to_dict(),
        'view': view.render(new_state),
    }
