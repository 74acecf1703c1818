"""Central definitions of every grantable EHS permission.

Modules group entities; entities carry actions. Action ids are unique catalog-wide and
never renamed silently: persisted roles reference them by key, and stale keys are dropped on load.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Tuple

CATEGORIES: Tuple[str, ...] = ('view', 'editor', 'management', 'collaboration', 'data_cleanup', 'reporting', 'advanced')

CATEGORY_LABELS: Dict[str, str] = {
    'view': 'View',
    'editor': 'Create & Edit',
    'management': 'Approvals',
    'collaboration': 'Collaboration',
    'data_cleanup': 'Data Cleanup',
    'reporting': 'Reporting & Export',
    'advanced': 'Advanced',
}

# action key -> category
ACTION_KEY_CATEGORIES: Dict[str, str] = {
    'view': 'view', 'view-list': 'view', 'view-cases': 'view', 'view-establishment': 'view', 'view-archived': 'view',
    'create': 'editor', 'edit': 'editor', 'duplicate': 'editor', 'upsert-establishment': 'editor',
    'submit-review': 'management', 'approve': 'management', 'reject': 'management', 'certify': 'management',
    'comment': 'collaboration', 'view-comments': 'collaboration', 'delete-comment': 'collaboration',
    'archive': 'data_cleanup', 'delete': 'data_cleanup',
    'export': 'reporting',
    'create-bulk': 'advanced',
}

# action id -> category, for the few actions whose key alone is misleading
ACTION_ID_CATEGORIES: Dict[str, str] = {
    'osha-audit-trail:create': 'advanced',
}


@dataclass(frozen=True)
class Action:
    id: str
    label: str
    description: str
    category: str

    @property
    def key(self) -> str:
        return action_key(self.id)


@dataclass(frozen=True)
class Entity:
    name: str
    actions: Tuple[Action, ...]


@dataclass(frozen=True)
class Module:
    id: str
    name: str
    description: str
    entities: Tuple[Entity, ...]
    advanced_only: bool = False


def action_key(action_id: str) -> str:
    """'osha-report:create' -> 'create'."""
    _, sep, key = action_id.partition(':')
    return key if sep else action_id


def category_for(action_id: str) -> str:
    if action_id in ACTION_ID_CATEGORIES:
        return ACTION_ID_CATEGORIES[action_id]
    return ACTION_KEY_CATEGORIES[action_key(action_id)]


# (id, label, description)
_RawAction = Tuple[str, str, str]

_STANDARD_REVIEW_FLOW: List[Tuple[str, str, str]] = [
    ('submit-review', 'Submit', 'Send to approvers'),
    ('approve', 'Approve', 'Sign off'),
    ('reject', 'Reject', 'Send back'),
    ('archive', 'Archive', 'Soft-delete'),
    ('delete', 'Delete', 'Hard delete'),
    ('export', 'Export', 'Download CSV'),
]

_RAW_MODULES = [
    # --- core modules ---
    {
        'id': 'event', 'name': 'Incident Management', 'description': 'Safety event reporting and tracking',
        'entities': [
            ('Safety Event', [
                ('event:create', 'Report Incident', 'Create new safety event'),
                ('event:view', 'View Incident Details', 'Access full details'),
                ('event:view-list', 'Browse Incident Log', 'List all events'),
                ('event:edit', 'Update Incident', 'Modify event details'),
                ('event:archive', 'Archive Incident', 'Soft-delete'),
                ('event:delete', 'Permanently Delete', 'Hard delete'),
                ('event:export', 'Export Data', 'Download as CSV'),
                ('event:comment', 'Add Comment', 'Post comment'),
                ('event:view-comments', 'View Comments', 'Read threads'),
                ('event:delete-comment', 'Delete Comment', 'Remove comment'),
            ]),
        ],
    },
    {
        'id': 'capa', 'name': 'Corrective & Preventive Actions', 'description': 'CAPA management with ownership tracking',
        'entities': [
            ('CAPA', [
                ('capa:create', 'Create CAPA', 'Create corrective action'),
                ('capa:view', 'View Details', 'Access CAPA details'),
                ('capa:view-list', 'Browse CAPAs', 'List all CAPAs'),
                ('capa:edit', 'Update CAPA', 'Modify details'),
                ('capa:duplicate', 'Duplicate CAPA', 'Copy with attachments'),
                ('capa:archive', 'Archive', 'Soft-delete'),
                ('capa:delete', 'Permanently Delete', 'Hard delete'),
                ('capa:export', 'Export Data', 'Download as CSV'),
                ('capa:comment', 'Add Comment', 'Post comment'),
                ('capa:view-comments', 'View Comments', 'Read threads'),
                ('capa:delete-comment', 'Delete Comment', 'Remove comment'),
            ]),
        ],
    },
    {
        'id': 'osha', 'name': 'OSHA Compliance', 'description': 'Complete OSHA recordkeeping and reporting (Contains PII)',
        'entities': [
            ('OSHA Report (300/301)', [
                ('osha-report:create', 'Create Report', 'Record injury/illness'),
                ('osha-report:view', 'View Report', 'Access details'),
                ('osha-report:view-list', 'Browse Reports', 'List all reports'),
                ('osha-report:edit', 'Update Report', 'Modify classification'),
                ('osha-report:archive', 'Archive', 'Soft-delete'),
                ('osha-report:delete', 'Permanently Delete', 'Hard delete'),
                ('osha-report:export', 'Export', 'Download as CSV'),
            ]),
            ('OSHA 300A Summary', [
                ('osha-summary:view-cases', 'View Annual Summary', 'Access 300A with rates'),
                ('osha-summary:view-establishment', 'View Establishment Info', 'Company hours/details'),
                ('osha-summary:upsert-establishment', 'Update Establishment', 'Modify hours worked'),
                ('osha-summary:certify', 'Executive Certification', 'Sign 300A'),
                ('osha-summary:archive', 'Archive Summary', 'Archive year'),
                ('osha-summary:view-archived', 'View Archived', 'Previous years'),
            ]),
            ('OSHA Agency Report', [
                ('osha-agency:create', 'Create Submission', 'Draft agency report'),
                ('osha-agency:view', 'View Submission', 'Access report'),
                ('osha-agency:view-list', 'Browse Submissions', 'List reports'),
                ('osha-agency:edit', 'Update Submission', 'Modify before submit'),
                ('osha-agency:archive', 'Archive', 'Soft-delete'),
                ('osha-agency:export', 'Export', 'Download as CSV'),
            ]),
            ('OSHA Location', [
                ('osha-location:create', 'Register Location', 'Add establishment'),
                ('osha-location:view', 'View Location', 'Access details'),
                ('osha-location:view-list', 'Browse Locations', 'List locations'),
                ('osha-location:archive', 'Archive', 'Soft-delete'),
                ('osha-location:export', 'Export', 'Download as CSV'),
            ]),
            ('OSHA Audit Trail', [
                ('osha-audit-trail:view', 'View Audit Trail', 'Compliance logs'),
                ('osha-audit-trail:create', 'Log Action', 'Manual log entry'),
            ]),
        ],
    },
    {
        'id': 'access-point', 'name': 'Access Points (QR Codes)', 'description': 'QR code generation for locations',
        'entities': [
            ('Access Point', [
                ('access-point:create', 'Create', 'Generate QR code'),
                ('access-point:create-bulk', 'Bulk Create', 'Import with AI matching'),
                ('access-point:view', 'View', 'Access details'),
                ('access-point:view-list', 'Browse', 'List all QR codes'),
                ('access-point:edit', 'Update', 'Modify assignment'),
                ('access-point:archive', 'Archive', 'Deactivate'),
                ('access-point:delete', 'Delete', 'Hard delete'),
                ('access-point:export', 'Export', 'Download CSV'),
            ]),
        ],
    },
    {
        'id': 'loto', 'name': 'Lockout/Tagout', 'description': 'Equipment isolation procedures',
        'entities': [
            ('LOTO Procedure', [
                ('loto:create', 'Create Procedure', 'Draft LOTO'),
                ('loto:view', 'View Procedure', 'Access details'),
                ('loto:view-list', 'Browse Library', 'List all LOTOs'),
                ('loto:edit', 'Update', 'Modify procedure'),
                ('loto:duplicate', 'Duplicate', 'Copy procedure'),
            ] + [(f'loto:{k}', label, desc) for k, label, desc in _STANDARD_REVIEW_FLOW]),
        ],
    },
    # --- advanced-only modules ---
    {
        'id': 'ptw', 'name': 'Permit to Work', 'description': 'High-risk work authorization', 'advanced_only': True,
        'entities': [
            ('Work Permit', [
                ('ptw:create', 'Create Permit', 'Draft PTW'),
                ('ptw:view', 'View Permit', 'Access details'),
                ('ptw:view-list', 'Browse Permits', 'List all PTWs'),
                ('ptw:edit', 'Update', 'Modify permit'),
                ('ptw:duplicate', 'Duplicate', 'Copy permit'),
                ('ptw:submit-review', 'Submit', 'Send to approvers'),
                ('ptw:approve', 'Approve', 'Authorize work'),
                ('ptw:reject', 'Reject', 'Send back'),
                ('ptw:archive', 'Archive', 'Soft-delete'),
                ('ptw:delete', 'Delete', 'Hard delete'),
                ('ptw:export', 'Export', 'Download CSV'),
            ]),
        ],
    },
    {
        'id': 'jha', 'name': 'Job Hazard Analysis', 'description': 'Task risk assessment', 'advanced_only': True,
        'entities': [
            ('JHA', [
                ('jha:create', 'Create JHA', 'Draft analysis'),
                ('jha:view', 'View JHA', 'Access details'),
                ('jha:view-list', 'Browse Library', 'List all JHAs'),
                ('jha:edit', 'Update', 'Modify JHA'),
            ] + [(f'jha:{k}', label, desc) for k, label, desc in _STANDARD_REVIEW_FLOW]),
        ],
    },
    {
        'id': 'sop', 'name': 'Standard Operating Procedures', 'description': 'SOP documentation and approval', 'advanced_only': True,
        'entities': [
            ('SOP', [
                ('sop:create', 'Create SOP', 'Draft procedure'),
                ('sop:view', 'View SOP', 'Access details'),
                ('sop:view-list', 'Browse Library', 'List all SOPs'),
                ('sop:edit', 'Update', 'Modify SOP'),
                ('sop:duplicate', 'Duplicate', 'Copy SOP'),
            ] + [(f'sop:{k}', label, desc) for k, label, desc in _STANDARD_REVIEW_FLOW]),
        ],
    },
    {
        'id': 'audit', 'name': 'Safety Audits', 'description': 'Audit management with checklist generation', 'advanced_only': True,
        'entities': [
            ('Audit', [
                ('audit:create', 'Create Audit', 'Schedule inspection'),
                ('audit:view', 'View Audit', 'Access details'),
                ('audit:view-list', 'Browse Audits', 'List all audits'),
                ('audit:edit', 'Update', 'Modify audit'),
                ('audit:duplicate', 'Duplicate', 'Copy template'),
            ] + [(f'audit:{k}', label, desc) for k, label, desc in _STANDARD_REVIEW_FLOW]),
        ],
    },
]


def build_modules(raw_modules=None) -> Tuple[Module, ...]:
    modules: List[Module] = []
    for raw in raw_modules if raw_modules is not None else _RAW_MODULES:
        entities = tuple(
            Entity(name=name, actions=tuple(Action(id=aid, label=label, description=desc, category=category_for(aid)) for aid, label, desc in actions))
            for name, actions in raw['entities']
        )
        modules.append(Module(
            id=raw['id'],
            name=raw['name'],
            description=raw['description'],
            entities=entities,
            advanced_only=bool(raw.get('advanced_only', False)),
        ))
    return tuple(modules)


EHS_MODULES: Tuple[Module, ...] = build_modules()

__all__ = [
    'CATEGORIES', 'CATEGORY_LABELS', 'Action', 'Entity', 'Module', 'EHS_MODULES',
    'action_key', 'category_for', 'build_modules',
]
