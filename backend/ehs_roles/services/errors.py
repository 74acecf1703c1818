from __future__ import annotations
from enum import Enum
from typing import Any


class RoleEngineError(Exception):
    """Base class for role & permission engine errors."""


class UnknownLeafError(RoleEngineError, ValueError):
    def __init__(self, module_id: str, entity: str, action: str):
        self.module_id = module_id
        self.entity = entity
        self.action = action
        super().__init__(f'Unknown permission leaf {module_id}/{entity}/{action}')


class RoleNotFoundError(RoleEngineError, KeyError):
    def __init__(self, role_id: str):
        self.role_id = role_id
        super().__init__(role_id)

    def __str__(self):
        return f'Role not found: {self.role_id}'


class ValidationCode(str, Enum):
    EMPTY_NAME = 'EmptyName'
    NAME_TOO_SHORT = 'NameTooShort'
    DUPLICATE_NAME = 'DuplicateName'
    NO_PERMISSIONS_SELECTED = 'NoPermissionsSelected'


class RoleValidationError(RoleEngineError):
    def __init__(self, code: ValidationCode, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class StoreWriteError(RoleEngineError):
    """Raised by a role store when the whole-collection write did not land."""


class RolePersistenceError(RoleEngineError):
    """The in-memory mutation was applied but persisting it failed.

    `result` carries what the operation would have returned (role id or True) so callers
    can keep going and surface a recoverable warning.
    """

    def __init__(self, operation: str, result: Any, cause: BaseException | None = None):
        self.operation = operation
        self.result = result
        self.cause = cause
        super().__init__(f'{operation} applied in memory but not persisted: {cause}')


__all__ = [
    'RoleEngineError', 'UnknownLeafError', 'RoleNotFoundError', 'ValidationCode',
    'RoleValidationError', 'StoreWriteError', 'RolePersistenceError',
]
