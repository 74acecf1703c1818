"""Read-only projections of a PermissionState for the role builder matrix.

Two independent axes:
  scope        core (modules without advanced_only) | full (every module)
  granularity  action (one toggle per action) | category (one aggregate toggle per category)

Scope only changes what is displayed and aggregated; grants in hidden modules are kept
untouched. All edits go through ehs_roles.services.selection.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List
from ehs_roles.config.roles import DEFAULT_GRANULARITY, DEFAULT_SCOPE
from ehs_roles.constants.permissions import CATEGORY_LABELS, Module
from ehs_roles.services.catalog import CATALOG, PermissionCatalog
from ehs_roles.services.permission_state import PermissionState
from ehs_roles.services.selection import (
    CategoryNode, EntityNode, GlobalNode, ModuleNode, Node,
    leaves_of, selection_of, toggle_node, toggle_leaf,
)


class Scope(str, Enum):
    CORE = 'core'
    FULL = 'full'


class Granularity(str, Enum):
    ACTION = 'action'
    CATEGORY = 'category'


@dataclass(frozen=True)
class MatrixView:
    scope: Scope = Scope.CORE
    granularity: Granularity = Granularity.ACTION
    catalog: PermissionCatalog = CATALOG

    @classmethod
    def from_args(cls, scope: str | None, granularity: str | None, catalog: PermissionCatalog = CATALOG) -> 'MatrixView':
        """Build from raw query values; raises ValueError on unknown values."""
        try:
            return cls(Scope(scope or DEFAULT_SCOPE), Granularity(granularity or DEFAULT_GRANULARITY), catalog)
        except ValueError:
            raise ValueError(f'Invalid scope/granularity: {scope!r}/{granularity!r}')

    @property
    def include_advanced_only(self) -> bool:
        return self.scope is Scope.FULL

    def visible_modules(self) -> List[Module]:
        return self.catalog.list_modules(self.include_advanced_only)

    def global_node(self) -> GlobalNode:
        return GlobalNode(self.include_advanced_only)

    def visible_total(self) -> int:
        return len(leaves_of(self.global_node(), self.catalog))

    def visible_enabled_count(self, state: PermissionState) -> int:
        return state.enabled_count(self.visible_modules())

    def selection(self, state: PermissionState, node: Node | None = None):
        return selection_of(state, node or self.global_node(), self.catalog)

    def toggle(self, state: PermissionState, node: Node) -> PermissionState:
        return toggle_node(state, node, self.catalog)

    def toggle_all(self, state: PermissionState) -> PermissionState:
        return toggle_node(state, self.global_node(), self.catalog)

    def toggle_leaf(self, state: PermissionState, module_id: str, entity: str, action: str) -> PermissionState:
        return toggle_leaf(state, module_id, entity, action, self.catalog)

    # --- rendering ---
    def _counts(self, state: PermissionState, node: Node) -> Dict[str, Any]:
        leaves = leaves_of(node, self.catalog)
        return {
            'selection': selection_of(state, node, self.catalog).value,
            'enabled': sum(1 for leaf in leaves if leaf in state),
            'total': len(leaves),
        }

    def _render_entities(self, state: PermissionState, module: Module) -> List[Dict[str, Any]]:
        rows = []
        for entity in module.entities:
            row = {'name': entity.name, **self._counts(state, EntityNode(module.id, entity.name)), 'actions': []}
            for action in entity.actions:
                row['actions'].append({
                    'id': action.id,
                    'key': action.key,
                    'label': action.label,
                    'description': action.description,
                    'category': action.category,
                    'granted': (module.id, entity.name, action.key) in state,
                })
            rows.append(row)
        return rows

    def _render_categories(self, state: PermissionState, module: Module) -> List[Dict[str, Any]]:
        return [
            {
                'category': category,
                'label': CATEGORY_LABELS[category],
                'action_ids': self.catalog.actions_in_category(module, category),
                **self._counts(state, CategoryNode(module.id, category)),
            }
            for category in self.catalog.categories_present(module)
        ]

    def render(self, state: PermissionState) -> Dict[str, Any]:
        modules = []
        for module in self.visible_modules():
            item = {
                'id': module.id,
                'name': module.name,
                'description': module.description,
                'advanced_only': module.advanced_only,
                **self._counts(state, ModuleNode(module.id)),
            }
            if self.granularity is Granularity.CATEGORY:
                item['categories'] = self._render_categories(state, module)
            else:
                item['entities'] = self._render_entities(state, module)
            modules.append(item)
        overall = self._counts(state, self.global_node())
        return {
            'scope': self.scope.value,
            'granularity': self.granularity.value,
            'selection': overall['selection'],
            'enabled_count': overall['enabled'],
            'total_count': overall['total'],
            'modules': modules,
        }


__all__ = ['Scope', 'Granularity', 'MatrixView']
