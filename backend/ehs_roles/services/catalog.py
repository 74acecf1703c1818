from __future__ import annotations
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple, Union
from ehs_roles.constants.permissions import CATEGORIES, EHS_MODULES, Action, Module


class Leaf(NamedTuple):
    """One (module, entity, action key) grant address."""
    module: str
    entity: str
    action: str


ModuleRef = Union[Module, str]


class PermissionCatalog:
    """Read-only index over the module/entity/action tree.

    Built once; every query is derived from the tuple of modules handed in.
    """

    def __init__(self, modules: Iterable[Module]):
        self.modules: Tuple[Module, ...] = tuple(modules)
        self._by_id: Dict[str, Module] = {}
        self._actions: Dict[str, Tuple[Leaf, Action]] = {}
        self._leaves: Dict[Leaf, Action] = {}
        for module in self.modules:
            if module.id in self._by_id:
                raise ValueError(f'Duplicate module id: {module.id}')
            self._by_id[module.id] = module
            for entity in module.entities:
                for action in entity.actions:
                    if action.id in self._actions:
                        raise ValueError(f'Duplicate action id: {action.id}')
                    if action.category not in CATEGORIES:
                        raise ValueError(f'Unknown category {action.category!r} for {action.id}')
                    leaf = Leaf(module.id, entity.name, action.key)
                    if leaf in self._leaves:
                        raise ValueError(f'Duplicate action key {action.key!r} in {module.id}/{entity.name}')
                    self._actions[action.id] = (leaf, action)
                    self._leaves[leaf] = action

    def _resolve(self, module: ModuleRef) -> Optional[Module]:
        if isinstance(module, Module):
            return module
        return self._by_id.get(module)

    def list_modules(self, include_advanced_only: bool = True) -> List[Module]:
        return [m for m in self.modules if include_advanced_only or not m.advanced_only]

    def get_module(self, module_id: str) -> Optional[Module]:
        return self._by_id.get(module_id)

    def actions_in_category(self, module: ModuleRef, category: str) -> List[str]:
        mod = self._resolve(module)
        if mod is None:
            return []
        return [a.id for e in mod.entities for a in e.actions if a.category == category]

    def categories_present(self, module: ModuleRef) -> List[str]:
        mod = self._resolve(module)
        if mod is None:
            return []
        present = {a.category for e in mod.entities for a in e.actions}
        return [c for c in CATEGORIES if c in present]

    def iter_leaves(self, modules: Optional[Iterable[ModuleRef]] = None) -> Iterator[Leaf]:
        selected = self.modules if modules is None else [m for m in (self._resolve(x) for x in modules) if m is not None]
        for module in selected:
            for entity in module.entities:
                for action in entity.actions:
                    yield Leaf(module.id, entity.name, action.key)

    def is_leaf(self, module_id: str, entity: str, action: str) -> bool:
        return Leaf(module_id, entity, action) in self._leaves

    def action_for(self, leaf: Leaf) -> Optional[Action]:
        return self._leaves.get(leaf)

    def find_action(self, action_id: str) -> Optional[Tuple[Leaf, Action]]:
        return self._actions.get(action_id)

    def action_ids(self) -> List[str]:
        return list(self._actions.keys())

    def count_actions(self, module: ModuleRef) -> int:
        mod = self._resolve(module)
        return sum(len(e.actions) for e in mod.entities) if mod else 0


CATALOG = PermissionCatalog(EHS_MODULES)

__all__ = ['Leaf', 'PermissionCatalog', 'CATALOG']
