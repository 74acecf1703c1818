import pytest
from ehs_roles.services.catalog import CATALOG
from ehs_roles.services.matrix import Granularity, MatrixView, Scope
from ehs_roles.services.permission_state import PermissionState, default_state
from ehs_roles.services.roles import build_system_roles
from ehs_roles.services.selection import ModuleNode


CORE_TOTAL = sum(CATALOG.count_actions(m) for m in CATALOG.list_modules(include_advanced_only=False))
FULL_TOTAL = len(CATALOG.action_ids())


def _system(role_id):
    return next(r for r in build_system_roles() if r.id == role_id)


def test_scope_totals():
    assert MatrixView().visible_total() == CORE_TOTAL
    assert MatrixView(Scope.FULL).visible_total() == FULL_TOTAL
    assert [m.id for m in MatrixView().visible_modules()] == ['event', 'capa', 'osha', 'access-point', 'loto']


def test_from_args_defaults_and_errors():
    view = MatrixView.from_args(None, None)
    assert view.scope is Scope.CORE and view.granularity is Granularity.ACTION
    assert MatrixView.from_args('full', 'category').granularity is Granularity.CATEGORY
    with pytest.raises(ValueError):
        MatrixView.from_args('everything', None)
    with pytest.raises(ValueError):
        MatrixView.from_args('core', 'entity')


def test_system_roles_projection():
    admin = _system('role_safety_admin').permissions
    assert MatrixView().visible_enabled_count(admin) == CORE_TOTAL
    assert MatrixView(Scope.FULL).visible_enabled_count(admin) == FULL_TOTAL
    assert MatrixView().selection(admin).value == 'full'
    manager = _system('role_safety_manager').permissions
    assert MatrixView().selection(manager).value == 'partial'
    assert 'event:delete' not in manager.action_ids()
    tech = _system('role_field_tech').permissions
    assert MatrixView().selection(tech, ModuleNode('osha')).value == 'none'
    assert 'event:create' in tech.action_ids()


def test_scope_switch_keeps_advanced_grants():
    state = PermissionState.from_action_ids(['sop:approve', 'event:view'])
    core = MatrixView()
    assert core.visible_enabled_count(state) == 1
    assert MatrixView(Scope.FULL).visible_enabled_count(state) == 2
    cleared = core.toggle(core.toggle_all(state), core.global_node())
    assert cleared.action_ids() == ['sop:approve']


def test_render_action_granularity():
    state = PermissionState.from_action_ids(['capa:view', 'capa:view-list'])
    view = MatrixView().render(state)
    assert view['scope'] == 'core' and view['granularity'] == 'action'
    assert view['enabled_count'] == 2 and view['total_count'] == CORE_TOTAL
    assert view['selection'] == 'partial'
    capa = next(m for m in view['modules'] if m['id'] == 'capa')
    assert capa['enabled'] == 2 and capa['total'] == 11
    actions = {a['id']: a for a in capa['entities'][0]['actions']}
    assert actions['capa:view']['granted'] is True
    assert actions['capa:edit']['granted'] is False
    assert actions['capa:edit']['category'] == 'editor'


def test_render_category_granularity():
    view = MatrixView(Scope.FULL, Granularity.CATEGORY).render(default_state())
    assert len(view['modules']) == 9
    loto = next(m for m in view['modules'] if m['id'] == 'loto')
    assert 'entities' not in loto
    rows = {c['category']: c for c in loto['categories']}
    assert list(rows) == ['view', 'editor', 'management', 'data_cleanup', 'reporting']
    assert rows['view']['action_ids'] == ['loto:view', 'loto:view-list']
    assert rows['management']['label'] == 'Approvals'
    assert rows['management']['selection'] == 'none'
