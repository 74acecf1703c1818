import pytest
from ehs_roles.services.errors import RoleValidationError, ValidationCode
from ehs_roles.services.permission_state import PermissionState, default_state
from ehs_roles.utils.validation import validate_role_input

SOME = PermissionState.from_action_ids(['event:view'])


@pytest.mark.parametrize('name', ['', '   ', None])
def test_empty_name(repo, name):
    with pytest.raises(RoleValidationError) as exc:
        validate_role_input(repo, name, SOME)
    assert exc.value.code is ValidationCode.EMPTY_NAME


def test_name_too_short(repo):
    with pytest.raises(RoleValidationError) as exc:
        validate_role_input(repo, ' ab ', SOME)
    assert exc.value.code is ValidationCode.NAME_TOO_SHORT
    assert '3 characters' in exc.value.message


def test_duplicate_name_case_insensitive(repo):
    with pytest.raises(RoleValidationError) as exc:
        validate_role_input(repo, 'view only', SOME)
    assert exc.value.code is ValidationCode.DUPLICATE_NAME
    assert exc.value.message == 'A role named "view only" already exists'


def test_zero_permissions_rejected_without_side_effects(repo):
    before = len(repo)
    saves = repo.store.saves
    with pytest.raises(RoleValidationError) as exc:
        validate_role_input(repo, 'Empty Role', default_state())
    assert exc.value.code is ValidationCode.NO_PERMISSIONS_SELECTED
    assert len(repo) == before
    assert repo.store.saves == saves


def test_first_failure_wins(repo):
    with pytest.raises(RoleValidationError) as exc:
        validate_role_input(repo, '', default_state())
    assert exc.value.code is ValidationCode.EMPTY_NAME


def test_update_may_keep_own_name(repo):
    role_id = repo.create('Inspector', SOME)
    assert validate_role_input(repo, ' Inspector ', SOME, exclude_id=role_id) == 'Inspector'
    with pytest.raises(RoleValidationError):
        validate_role_input(repo, 'Inspector', SOME)


def test_only_catalog_grants_can_reach_validation(repo):
    stale_only = PermissionState.from_dict({'ghost': {'Nope': {'fly': True}}})
    with pytest.raises(RoleValidationError) as exc:
        validate_role_input(repo, 'Ghost Role', stale_only)
    assert exc.value.code is ValidationCode.NO_PERMISSIONS_SELECTED
