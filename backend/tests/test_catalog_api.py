from ehs_roles.services.catalog import CATALOG
from ehs_roles.services.matrix import MatrixView
from ehs_roles.services.permission_state import default_state

CORE_TOTAL = MatrixView().visible_total()
FULL_TOTAL = len(CATALOG.action_ids())


def test_health(client):
    assert client.get('/healthz').get_json() == {'status': 'ok'}


def test_catalog_core_and_full(client):
    core = client.get('/catalog').get_json()
    assert core['scope'] == 'core'
    assert core['total_actions'] == CORE_TOTAL
    assert [m['id'] for m in core['modules']] == ['event', 'capa', 'osha', 'access-point', 'loto']
    assert [c['label'] for c in core['categories']][:3] == ['View', 'Create & Edit', 'Approvals']
    full = client.get('/catalog?scope=full').get_json()
    assert full['total_actions'] == FULL_TOTAL
    ptw = next(m for m in full['modules'] if m['id'] == 'ptw')
    assert ptw['advanced_only'] is True
    assert ptw['entities'][0]['actions'][0]['id'] == 'ptw:create'
    assert client.get('/catalog?scope=partial').status_code == 400


def test_toggle_module_from_empty(client):
    resp = client.post('/matrix/toggle', json={'permissions': {}, 'node': {'kind': 'module', 'module': 'event'}})
    assert resp.status_code == 200
    body = resp.get_json()
    assert all(body['permissions']['event']['Safety Event'].values())
    assert body['view']['enabled_count'] == 10
    assert body['view']['selection'] == 'partial'


def test_toggle_full_category_clears_it(client):
    perms = {'loto': {'LOTO Procedure': {'view': True, 'view-list': True, 'approve': True}}}
    resp = client.post('/matrix/toggle', json={
        'permissions': perms,
        'node': {'kind': 'category', 'module': 'loto', 'category': 'view'},
        'granularity': 'category',
    })
    body = resp.get_json()
    loto = body['permissions']['loto']['LOTO Procedure']
    assert loto['view'] is False and loto['view-list'] is False
    assert loto['approve'] is True
    module = next(m for m in body['view']['modules'] if m['id'] == 'loto')
    rows = {c['category']: c['selection'] for c in module['categories']}
    assert rows['view'] == 'none'
    assert rows['management'] == 'partial'


def test_toggle_all_core_keeps_advanced(client):
    perms = {'audit': {'Audit': {'approve': True}}}
    body = client.post('/matrix/toggle', json={'permissions': perms, 'node': {'kind': 'global', 'include_advanced_only': False}}).get_json()
    assert body['view']['selection'] == 'full'
    assert body['permissions']['audit']['Audit']['approve'] is True
    assert body['permissions']['audit']['Audit']['view'] is False


def test_toggle_rejects_bad_input(client):
    unknown = client.post('/matrix/toggle', json={'node': {'kind': 'leaf', 'module': 'event', 'entity': 'Safety Event', 'action': 'fly'}})
    assert unknown.status_code == 400
    assert 'Unknown permission leaf' in unknown.get_json()['error']['detail']
    assert client.post('/matrix/toggle', json={'node': {'kind': 'planet'}}).status_code == 400
    assert client.post('/matrix/toggle', json={'node': {'kind': 'module', 'module': 'event'}, 'scope': 'nope'}).status_code == 400


def test_select_all_follows_view_scope(client):
    core_full = MatrixView().toggle_all(default_state())
    resp = client.post('/matrix/toggle', json={
        'permissions': core_full.to_dict(),
        'node': {'kind': 'global'},
        'scope': 'core',
    })
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['view']['selection'] == 'none'
    assert body['view']['enabled_count'] == 0
    assert not any(body['permissions']['ptw']['Work Permit'].values())
    assert not any(body['permissions']['event']['Safety Event'].values())
    everything = client.post('/matrix/toggle', json={'node': {'kind': 'global'}, 'scope': 'full'}).get_json()
    assert everything['view']['enabled_count'] == FULL_TOTAL
    assert everything['view']['selection'] == 'full'


def test_select_all_flag_must_match_scope(client):
    as_text = client.post('/matrix/toggle', json={'node': {'kind': 'global', 'include_advanced_only': 'false'}})
    assert as_text.status_code == 400
    contradicting = client.post('/matrix/toggle', json={'node': {'kind': 'global', 'include_advanced_only': True}, 'scope': 'core'})
    assert contradicting.status_code == 400
    assert 'contradicts' in contradicting.get_json()['error']['detail']
