"""Immutable, sparse grant set for a single role.

A PermissionState only remembers granted leaves, each of which must be a catalog leaf;
anything else reads as False. Every mutation helper returns a new state and leaves its
input untouched.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Mapping, Optional
from ehs_roles.services.catalog import CATALOG, Leaf, ModuleRef, PermissionCatalog
from ehs_roles.services.errors import UnknownLeafError

logger = logging.getLogger(__name__)


class PermissionState:
    __slots__ = ('_granted',)

    def __init__(self, granted: Iterable[Leaf] = (), catalog: PermissionCatalog = CATALOG):
        leaves = frozenset(Leaf(*leaf) for leaf in granted)
        unknown = sorted(leaf for leaf in leaves if not catalog.is_leaf(*leaf))
        if unknown:
            raise UnknownLeafError(*unknown[0])
        object.__setattr__(self, '_granted', leaves)

    def __setattr__(self, name, value):
        raise AttributeError('PermissionState is immutable')

    @property
    def granted(self) -> FrozenSet[Leaf]:
        return self._granted

    def __contains__(self, leaf) -> bool:
        return Leaf(*leaf) in self._granted

    def __iter__(self) -> Iterator[Leaf]:
        return iter(sorted(self._granted))

    def __len__(self) -> int:
        return len(self._granted)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PermissionState):
            return NotImplemented
        return self._granted == other._granted

    def __hash__(self) -> int:
        return hash(self._granted)

    def __repr__(self) -> str:
        return f'PermissionState({len(self._granted)} granted)'

    def enabled_count(self, modules: Optional[Iterable[ModuleRef]] = None) -> int:
        if modules is None:
            return len(self._granted)
        ids = {m if isinstance(m, str) else m.id for m in modules}
        return sum(1 for leaf in self._granted if leaf.module in ids)

    def has_any(self) -> bool:
        return bool(self._granted)

    def with_leaves(self, leaves: Iterable[Leaf], value: bool, catalog: PermissionCatalog = CATALOG) -> 'PermissionState':
        leaves = frozenset(Leaf(*leaf) for leaf in leaves)
        return PermissionState(self._granted | leaves if value else self._granted - leaves, catalog)

    def to_dict(self, catalog: PermissionCatalog = CATALOG) -> Dict[str, Dict[str, Dict[str, bool]]]:
        """Dense nested form: every catalog leaf present, False where not granted."""
        out: Dict[str, Dict[str, Dict[str, bool]]] = {}
        for leaf in catalog.iter_leaves():
            out.setdefault(leaf.module, {}).setdefault(leaf.entity, {})[leaf.action] = leaf in self._granted
        return out

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]], catalog: PermissionCatalog = CATALOG) -> 'PermissionState':
        """Build from module -> entity -> action -> bool; keys outside the catalog are ignored."""
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise ValueError('permissions must be an object of module -> entity -> action -> bool')
        granted = []
        stale = []
        for module_id, entities in payload.items():
            if not isinstance(entities, Mapping):
                raise ValueError(f'permissions.{module_id} must be an object')
            for entity, actions in entities.items():
                if not isinstance(actions, Mapping):
                    raise ValueError(f'permissions.{module_id}.{entity} must be an object')
                for action, value in actions.items():
                    if not catalog.is_leaf(module_id, entity, action):
                        stale.append(f'{module_id}/{entity}/{action}')
                        continue
                    if value is True:
                        granted.append(Leaf(module_id, entity, action))
        if stale:
            logger.debug('Ignoring %d stale permission keys: %s', len(stale), ', '.join(stale[:10]))
        return cls(granted, catalog)

    @classmethod
    def from_action_ids(cls, action_ids: Iterable[str], catalog: PermissionCatalog = CATALOG) -> 'PermissionState':
        granted = []
        for action_id in action_ids:
            found = catalog.find_action(action_id)
            if found is None:
                raise ValueError(f'Unknown action id: {action_id}')
            granted.append(found[0])
        return cls(granted, catalog)

    def action_ids(self, catalog: PermissionCatalog = CATALOG) -> list:
        ids = []
        for leaf in self:
            action = catalog.action_for(leaf)
            if action is not None:
                ids.append(action.id)
        return ids


def default_state() -> PermissionState:
    return PermissionState()


def get_grant(state: PermissionState, module_id: str, entity: str, action: str) -> bool:
    return Leaf(module_id, entity, action) in state.granted


def set_grant(state: PermissionState, module_id: str, entity: str, action: str, value: bool,
              catalog: PermissionCatalog = CATALOG) -> PermissionState:
    if not catalog.is_leaf(module_id, entity, action):
        raise UnknownLeafError(module_id, entity, action)
    return state.with_leaves([Leaf(module_id, entity, action)], bool(value), catalog)


__all__ = ['PermissionState', 'default_state', 'get_grant', 'set_grant']
