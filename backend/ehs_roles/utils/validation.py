"""Caller-side checks run before RoleRepository.create / update.

Checks run in a fixed order and the first failure wins. Nothing here mutates the
repository.
"""
from __future__ import annotations
from typing import Optional
from ehs_roles.config.roles import MIN_ROLE_NAME_LENGTH
from ehs_roles.services.errors import RoleValidationError, ValidationCode
from ehs_roles.services.permission_state import PermissionState


def validate_role_input(repository, name: Optional[str], permissions: PermissionState, exclude_id: Optional[str] = None) -> str:
    """Validate a role form submission.

    Returns the trimmed name or raises RoleValidationError.
    """
    trimmed = (name or '').strip()
    if not trimmed:
        raise RoleValidationError(ValidationCode.EMPTY_NAME, 'Role name is required')
    if len(trimmed) < MIN_ROLE_NAME_LENGTH:
        raise RoleValidationError(ValidationCode.NAME_TOO_SHORT, f'Role name must be at least {MIN_ROLE_NAME_LENGTH} characters')
    if repository.is_duplicate_name(trimmed, exclude_id):
        raise RoleValidationError(ValidationCode.DUPLICATE_NAME, f'A role named "{trimmed}" already exists')
    if not permissions.has_any():
        raise RoleValidationError(ValidationCode.NO_PERMISSIONS_SELECTED, 'At least one permission must be enabled')
    return trimmed

__all__ = ['validate_role_input']
