import pytest
from ehs_roles.constants.permissions import CATEGORIES, EHS_MODULES, action_key, category_for
from ehs_roles.services.catalog import CATALOG, Leaf, PermissionCatalog


def test_module_tiers():
    ids = [m.id for m in CATALOG.list_modules()]
    assert ids == ['event', 'capa', 'osha', 'access-point', 'loto', 'ptw', 'jha', 'sop', 'audit']
    core = [m.id for m in CATALOG.list_modules(include_advanced_only=False)]
    assert core == ['event', 'capa', 'osha', 'access-point', 'loto']


def test_action_counts():
    assert CATALOG.count_actions('event') == 10
    assert CATALOG.count_actions('osha') == 26
    assert CATALOG.count_actions('loto') == 11
    assert CATALOG.count_actions('missing') == 0
    assert len(CATALOG.action_ids()) == 109
    assert len(list(CATALOG.iter_leaves(['event', 'capa']))) == 21
    assert len(list(CATALOG.iter_leaves(CATALOG.list_modules(include_advanced_only=False)))) == 66


def test_action_ids_unique_and_categorized():
    ids = CATALOG.action_ids()
    assert len(ids) == len(set(ids))
    for module in EHS_MODULES:
        for entity in module.entities:
            for action in entity.actions:
                assert action.category in CATEGORIES
                assert action.id.endswith(':' + action.key)


def test_category_derivation():
    assert action_key('osha-report:create') == 'create'
    assert category_for('event:create') == 'editor'
    assert category_for('event:view-comments') == 'collaboration'
    assert category_for('loto:approve') == 'management'
    assert category_for('access-point:create-bulk') == 'advanced'
    # manual audit-trail entries are not ordinary record creation
    assert category_for('osha-audit-trail:create') == 'advanced'


def test_categories_present_in_order():
    assert CATALOG.categories_present('loto') == ['view', 'editor', 'management', 'data_cleanup', 'reporting']
    assert CATALOG.actions_in_category('loto', 'view') == ['loto:view', 'loto:view-list']
    assert CATALOG.actions_in_category('event', 'management') == []


def test_leaf_lookup():
    leaf, action = CATALOG.find_action('osha-summary:certify')
    assert leaf == Leaf('osha', 'OSHA 300A Summary', 'certify')
    assert action.label == 'Executive Certification'
    assert CATALOG.is_leaf('osha', 'OSHA 300A Summary', 'certify')
    assert not CATALOG.is_leaf('osha', 'OSHA 300A Summary', 'approve')
    assert CATALOG.find_action('osha-summary:approve') is None


def test_duplicate_module_rejected():
    with pytest.raises(ValueError):
        PermissionCatalog(list(EHS_MODULES) + [EHS_MODULES[0]])
