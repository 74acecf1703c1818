"""Tri-state selection and bulk toggles over aggregation nodes.

Selection is always recomputed from the leaf grants. A node with no constituent leaves
is NONE. Toggling a FULL node clears it; toggling a NONE or PARTIAL node fills it.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Union
from ehs_roles.services.catalog import CATALOG, Leaf, PermissionCatalog
from ehs_roles.services.errors import UnknownLeafError
from ehs_roles.services.permission_state import PermissionState


class Selection(str, Enum):
    NONE = 'none'
    PARTIAL = 'partial'
    FULL = 'full'


@dataclass(frozen=True)
class ActionNode:
    module: str
    entity: str
    action: str


@dataclass(frozen=True)
class EntityNode:
    module: str
    entity: str


@dataclass(frozen=True)
class ModuleNode:
    module: str


@dataclass(frozen=True)
class CategoryNode:
    module: str
    category: str


@dataclass(frozen=True)
class GlobalNode:
    include_advanced_only: bool = True


Node = Union[ActionNode, EntityNode, ModuleNode, CategoryNode, GlobalNode]


def leaves_of(node: Node, catalog: PermissionCatalog = CATALOG) -> List[Leaf]:
    if isinstance(node, ActionNode):
        return [Leaf(node.module, node.entity, node.action)] if catalog.is_leaf(node.module, node.entity, node.action) else []
    if isinstance(node, EntityNode):
        module = catalog.get_module(node.module)
        if module is None:
            return []
        return [Leaf(module.id, e.name, a.key) for e in module.entities if e.name == node.entity for a in e.actions]
    if isinstance(node, ModuleNode):
        return list(catalog.iter_leaves([node.module]))
    if isinstance(node, CategoryNode):
        module = catalog.get_module(node.module)
        if module is None:
            return []
        return [Leaf(module.id, e.name, a.key) for e in module.entities for a in e.actions if a.category == node.category]
    if isinstance(node, GlobalNode):
        return list(catalog.iter_leaves(catalog.list_modules(node.include_advanced_only)))
    raise TypeError(f'Unsupported node: {node!r}')


def selection_of(state: PermissionState, node: Node, catalog: PermissionCatalog = CATALOG) -> Selection:
    leaves = leaves_of(node, catalog)
    if not leaves:
        return Selection.NONE
    granted = sum(1 for leaf in leaves if leaf in state.granted)
    if granted == 0:
        return Selection.NONE
    if granted == len(leaves):
        return Selection.FULL
    return Selection.PARTIAL


def toggle_node(state: PermissionState, node: Node, catalog: PermissionCatalog = CATALOG) -> PermissionState:
    leaves = leaves_of(node, catalog)
    if not leaves:
        return state
    target = selection_of(state, node, catalog) is not Selection.FULL
    return state.with_leaves(leaves, target, catalog)


def toggle_leaf(state: PermissionState, module_id: str, entity: str, action: str,
                catalog: PermissionCatalog = CATALOG) -> PermissionState:
    if not catalog.is_leaf(module_id, entity, action):
        raise UnknownLeafError(module_id, entity, action)
    leaf = Leaf(module_id, entity, action)
    return state.with_leaves([leaf], leaf not in state.granted, catalog)


def node_from_payload(payload: Mapping[str, Any], include_advanced_only: bool = True) -> Node:
    """Parse a {'kind': ..., ...} request object into a node. Raises ValueError.

    A global node always spans the caller's scope; an explicit `include_advanced_only`
    in the payload must be a boolean that agrees with it.
    """
    if not isinstance(payload, Mapping):
        raise ValueError('node must be an object')
    kind = payload.get('kind')
    try:
        if kind in ('action', 'leaf'):
            return ActionNode(str(payload['module']), str(payload['entity']), str(payload['action']))
        if kind == 'entity':
            return EntityNode(str(payload['module']), str(payload['entity']))
        if kind == 'module':
            return ModuleNode(str(payload['module']))
        if kind == 'category':
            return CategoryNode(str(payload['module']), str(payload['category']))
    except KeyError as e:
        raise ValueError(f'node.{e.args[0]} required for kind {kind}')
    if kind == 'global':
        flag = payload.get('include_advanced_only', include_advanced_only)
        if not isinstance(flag, bool):
            raise ValueError('node.include_advanced_only must be a boolean')
        if flag != bool(include_advanced_only):
            raise ValueError('node.include_advanced_only contradicts the view scope')
        return GlobalNode(bool(include_advanced_only))
    raise ValueError(f'Unknown node kind: {kind}')


__all__ = [
    'Selection', 'ActionNode', 'EntityNode', 'ModuleNode', 'CategoryNode', 'GlobalNode', 'Node',
    'leaves_of', 'selection_of', 'toggle_node', 'toggle_leaf', 'node_from_payload',
]
