"""Role repository: system templates plus user-defined custom roles.

The repository is a dumb store for well-formed input. Name rules and the
"at least one permission" rule live in ehs_roles.utils.validation and run before
create/update. System roles are read-only here; duplicate() is the only way to
derive an editable role from one.
"""
from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from fnmatch import fnmatchcase
from typing import Any, Callable, Dict, List, Mapping, Optional
from ehs_roles.config.roles import COPY_SUFFIX, ROLE_ID_PREFIX
from ehs_roles.constants.system_roles import SYSTEM_ACTOR, SYSTEM_ROLE_PRESETS, SYSTEM_TIMESTAMP, SystemRolePreset
from ehs_roles.services.catalog import CATALOG, PermissionCatalog
from ehs_roles.services.errors import RoleNotFoundError, RolePersistenceError, StoreWriteError
from ehs_roles.services.permission_state import PermissionState
from ehs_roles.services.role_store import RoleStore

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class CustomRole:
    id: str
    name: str
    permissions: PermissionState
    is_system_role: bool
    created_at: str
    updated_at: str
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    def to_dict(self, catalog: PermissionCatalog = CATALOG) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'permissions': self.permissions.to_dict(catalog),
            'is_system_role': self.is_system_role,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'created_by': self.created_by,
            'updated_by': self.updated_by,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], catalog: PermissionCatalog = CATALOG) -> 'CustomRole':
        role_id = data['id']
        name = data['name']
        if not isinstance(role_id, str) or not role_id or not isinstance(name, str):
            raise ValueError('role id and name must be non-empty strings')
        return cls(
            id=role_id,
            name=name.strip(),
            permissions=PermissionState.from_dict(data.get('permissions') or {}, catalog),
            is_system_role=bool(data.get('is_system_role', False)),
            created_at=str(data['created_at']),
            updated_at=str(data.get('updated_at') or data['created_at']),
            created_by=data.get('created_by'),
            updated_by=data.get('updated_by'),
        )


def expand_preset(preset: SystemRolePreset, catalog: PermissionCatalog = CATALOG) -> PermissionState:
    """Resolve a preset's grant/deny patterns to concrete action ids."""
    ids = [aid for aid in catalog.action_ids()
           if any(fnmatchcase(aid, g) for g in preset.grants)
           and not any(fnmatchcase(aid, d) for d in preset.denies)]
    return PermissionState.from_action_ids(ids, catalog)


def build_system_roles(catalog: PermissionCatalog = CATALOG) -> List[CustomRole]:
    return [
        CustomRole(
            id=preset.id,
            name=preset.name,
            permissions=expand_preset(preset, catalog),
            is_system_role=True,
            created_at=SYSTEM_TIMESTAMP,
            updated_at=SYSTEM_TIMESTAMP,
            created_by=SYSTEM_ACTOR,
        )
        for preset in SYSTEM_ROLE_PRESETS
    ]


def _name_key(name: str) -> str:
    return name.strip().casefold()


class RoleRepository:
    """Authoritative in-memory role collection backed by a whole-collection store."""

    def __init__(self, store: RoleStore, catalog: PermissionCatalog = CATALOG,
                 clock: Callable[[], str] = utc_now_iso,
                 id_factory: Optional[Callable[[], str]] = None):
        self.store = store
        self.catalog = catalog
        self.clock = clock
        self.id_factory = id_factory or (lambda: f'{ROLE_ID_PREFIX}{uuid.uuid4().hex}')
        self._roles: Dict[str, CustomRole] = {}
        self.initialized = False
        self.seeded = False
        self.persist_failed = False

    # --- lifecycle ---
    def initialize(self) -> 'RoleRepository':
        try:
            raw = self.store.load()
        except Exception:
            logger.warning('Role store unreadable; reseeding system roles', exc_info=True)
            raw = None
        roles = self._parse_collection(raw)
        if roles:
            self._roles = roles
            self.seeded = False
        else:
            self._roles = {r.id: r for r in build_system_roles(self.catalog)}
            self.seeded = True
            logger.info('Seeded %d system roles', len(self._roles))
            try:
                self._persist('initialize', None)
            except RolePersistenceError:
                pass  # seed stays authoritative in memory
        self.initialized = True
        return self

    def _parse_collection(self, raw: Any) -> Dict[str, CustomRole]:
        if not isinstance(raw, Mapping):
            if raw is not None:
                logger.warning('Role store payload is not an object (%s); ignoring', type(raw).__name__)
            return {}
        roles: Dict[str, CustomRole] = {}
        for key, data in raw.items():
            try:
                role = CustomRole.from_dict(data, self.catalog)
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning('Skipping malformed stored role %r', key)
                continue
            roles[role.id] = role
        return roles

    def serialize(self) -> Dict[str, Dict[str, Any]]:
        return {rid: role.to_dict(self.catalog) for rid, role in self._roles.items()}

    def _persist(self, operation: str, result: Any) -> None:
        try:
            self.store.save(self.serialize())
        except StoreWriteError as e:
            self.persist_failed = True
            logger.exception('Persisting roles after %s failed; in-memory state kept', operation)
            raise RolePersistenceError(operation, result, e) from e
        self.persist_failed = False

    # --- reads ---
    def get(self, role_id: str) -> Optional[CustomRole]:
        return self._roles.get(role_id)

    def __len__(self) -> int:
        return len(self._roles)

    def __contains__(self, role_id) -> bool:
        return role_id in self._roles

    def list(self) -> List[CustomRole]:
        return sorted(self._roles.values(), key=lambda r: (not r.is_system_role, r.name.casefold(), r.id))

    def search(self, query: Optional[str]) -> List[CustomRole]:
        needle = (query or '').strip().casefold()
        roles = self.list()
        if not needle:
            return roles
        return [r for r in roles if needle in r.name.casefold()]

    def is_duplicate_name(self, name: str, exclude_id: Optional[str] = None) -> bool:
        key = _name_key(name)
        return any(_name_key(r.name) == key and r.id != exclude_id for r in self._roles.values())

    # --- mutations ---
    def create(self, name: str, permissions: PermissionState, created_by: Optional[str] = None) -> str:
        role_id = self._new_id()
        now = self.clock()
        self._roles[role_id] = CustomRole(
            id=role_id,
            name=name.strip(),
            permissions=permissions,
            is_system_role=False,
            created_at=now,
            updated_at=now,
            created_by=created_by,
        )
        self._persist('create', role_id)
        return role_id

    def update(self, role_id: str, name: str, permissions: PermissionState, updated_by: Optional[str] = None) -> bool:
        role = self._roles.get(role_id)
        if role is None or role.is_system_role:
            return False
        self._roles[role_id] = replace(role, name=name.strip(), permissions=permissions,
                                       updated_at=self.clock(), updated_by=updated_by)
        self._persist('update', True)
        return True

    def delete(self, role_id: str) -> bool:
        role = self._roles.get(role_id)
        if role is None or role.is_system_role:
            return False
        del self._roles[role_id]
        self._persist('delete', True)
        return True

    def duplicate(self, role_id: str, created_by: Optional[str] = None) -> str:
        role = self._roles.get(role_id)
        if role is None:
            raise RoleNotFoundError(role_id)
        new_id = self._new_id()
        now = self.clock()
        self._roles[new_id] = CustomRole(
            id=new_id,
            name=self._copy_name(role.name),
            permissions=role.permissions,
            is_system_role=False,
            created_at=now,
            updated_at=now,
            created_by=created_by,
        )
        self._persist('duplicate', new_id)
        return new_id

    def _copy_name(self, base: str) -> str:
        candidate = f'{base} ({COPY_SUFFIX})'
        counter = 2
        while self.is_duplicate_name(candidate):
            candidate = f'{base} ({COPY_SUFFIX} {counter})'
            counter += 1
        return candidate

    def _new_id(self) -> str:
        role_id = self.id_factory()
        while role_id in self._roles:
            role_id = self.id_factory()
        return role_id


__all__ = ['CustomRole', 'RoleRepository', 'build_system_roles', 'expand_preset', 'utc_now_iso']
