import pytest
from ehs_roles.services.catalog import CATALOG, Leaf
from ehs_roles.services.errors import UnknownLeafError
from ehs_roles.services.permission_state import PermissionState, default_state, get_grant, set_grant


def test_default_state_grants_nothing():
    state = default_state()
    assert not state.has_any()
    assert state.enabled_count() == 0
    assert get_grant(state, 'event', 'Safety Event', 'create') is False
    # unknown addresses read as False rather than raising
    assert get_grant(state, 'ghost', 'Nope', 'fly') is False


def test_set_grant_returns_new_state():
    base = default_state()
    granted = set_grant(base, 'event', 'Safety Event', 'create', True)
    assert get_grant(granted, 'event', 'Safety Event', 'create') is True
    assert get_grant(base, 'event', 'Safety Event', 'create') is False
    revoked = set_grant(granted, 'event', 'Safety Event', 'create', False)
    assert revoked == base


def test_set_grant_unknown_leaf():
    with pytest.raises(UnknownLeafError) as exc:
        set_grant(default_state(), 'event', 'Safety Event', 'teleport', True)
    assert exc.value.action == 'teleport'
    assert isinstance(exc.value, ValueError)


def test_state_is_immutable():
    state = PermissionState([Leaf('capa', 'CAPA', 'view')])
    with pytest.raises(AttributeError):
        state._granted = frozenset()
    assert ('capa', 'CAPA', 'view') in state


def test_to_dict_is_dense():
    state = set_grant(default_state(), 'loto', 'LOTO Procedure', 'approve', True)
    dense = state.to_dict()
    assert set(dense) == {m.id for m in CATALOG.modules}
    assert dense['loto']['LOTO Procedure']['approve'] is True
    assert dense['loto']['LOTO Procedure']['reject'] is False
    assert sum(len(actions) for entities in dense.values() for actions in entities.values()) == len(CATALOG.action_ids())


def test_from_dict_drops_stale_and_non_true_values():
    payload = {
        'event': {'Safety Event': {'view': True, 'edit': 'yes', 'export': 1, 'teleport': True}},
        'retired-module': {'Thing': {'view': True}},
        'capa': {'CAPA': {'comment': True}},
    }
    state = PermissionState.from_dict(payload)
    assert sorted(state) == [Leaf('capa', 'CAPA', 'comment'), Leaf('event', 'Safety Event', 'view')]


def test_from_dict_rejects_wrong_shape():
    with pytest.raises(ValueError):
        PermissionState.from_dict(['event'])
    with pytest.raises(ValueError):
        PermissionState.from_dict({'event': True})


def test_dense_form_round_trip():
    state = PermissionState.from_action_ids(['ptw:approve', 'osha-agency:export', 'event:view'])
    assert PermissionState.from_dict(state.to_dict()) == state
    assert sorted(state.action_ids()) == ['event:view', 'osha-agency:export', 'ptw:approve']


def test_from_action_ids_unknown():
    with pytest.raises(ValueError):
        PermissionState.from_action_ids(['event:teleport'])


def test_enabled_count_by_module():
    state = PermissionState.from_action_ids(['event:view', 'event:edit', 'ptw:view'])
    assert state.enabled_count() == 3
    assert state.enabled_count(['event']) == 2
    assert state.enabled_count(CATALOG.list_modules(include_advanced_only=False)) == 2


def test_state_rejects_non_catalog_leaves():
    with pytest.raises(UnknownLeafError):
        PermissionState([Leaf('ghost', 'Nope', 'fly')])
    base = PermissionState.from_action_ids(['event:view'])
    with pytest.raises(UnknownLeafError):
        base.with_leaves([Leaf('event', 'Safety Event', 'fly')], True)
    # removing an unknown leaf is harmless
    assert base.with_leaves([Leaf('event', 'Safety Event', 'fly')], False) == base
