from __future__ import annotations
from typing import Any, Dict, Iterable, Optional
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from ehs_roles import get_db
from ehs_roles.decorators.auth import current_actor
from ehs_roles.models.audit import AuditLog


def _actor_or_anonymous() -> Optional[str]:
    try:
        return current_actor()
    except (JWTExtendedException, PyJWTError):
        return None


def add_audit(action: str, entity: Optional[str] = None, entity_id: Optional[str] = None,
              meta: Optional[Dict[str, Any]] = None, permissions: Optional[Iterable[str]] = None):
    """Stage an audit row in the current session; the caller commits.

    Parameters:
      action: ROLE.CREATE, ROLE.UPDATE, ROLE.DELETE or ROLE.DUPLICATE
      entity / entity_id: 'Role' and the role id
      meta: JSON-safe dict, shallow copied
      permissions: granted action ids after the change
    """
    log = AuditLog(
        actor=_actor_or_anonymous(),
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        permissions_snapshot=sorted(permissions or ()),
        meta=dict(meta or {}),
    )
    get_db().add(log)
    return log
