"""Built-in system role templates seeded on first run.

Grants are action-id patterns (fnmatch style): '*' implies every action, 'event:*' every
Incident Management action, '*:view' every plain view. Denies are applied after grants.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

SYSTEM_TIMESTAMP = '2025-01-01T10:00:00+00:00'
SYSTEM_ACTOR = 'system'


@dataclass(frozen=True)
class SystemRolePreset:
    id: str
    name: str
    grants: Tuple[str, ...]
    denies: Tuple[str, ...] = ()


_BROWSE = ('*:view', '*:view-list')

SYSTEM_ROLE_PRESETS: Tuple[SystemRolePreset, ...] = (
    SystemRolePreset(id='role_safety_admin', name='Safety Administrator', grants=('*',)),
    SystemRolePreset(
        id='role_safety_manager',
        name='Safety Manager',
        grants=('*',),
        denies=(
            '*:delete', '*:delete-comment',
            'osha-report:archive', 'osha-summary:certify', 'osha-summary:archive',
            'osha-agency:archive', 'osha-location:archive', 'osha-audit-trail:create',
            'access-point:archive',
        ),
    ),
    SystemRolePreset(
        id='role_field_tech',
        name='Field Technician',
        grants=_BROWSE + ('event:create', 'event:comment', 'event:view-comments', 'capa:comment', 'capa:view-comments'),
        denies=('osha-*',),
    ),
    SystemRolePreset(
        id='role_view_only',
        name='View Only',
        grants=_BROWSE + ('event:view-comments', 'capa:view-comments'),
        denies=('osha-*',),
    ),
)

__all__ = ['SystemRolePreset', 'SYSTEM_ROLE_PRESETS', 'SYSTEM_TIMESTAMP', 'SYSTEM_ACTOR']
