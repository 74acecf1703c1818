"""Audit decorator for role mutation views.

    @audit_log('ROLE.UPDATE', entity_id_arg='role_id', meta_keys=['name'],
               diff_keys=['name', 'total_enabled'], before=lambda kw: _snapshot(kw['role_id']),
               permissions=lambda data, kw: _granted_ids(data.get('id')))
    def update_role(role_id): ...

The view runs first. Responses with status >= 400 and raised exceptions are not audited.
Otherwise one AuditLog row is staged and committed; a failing audit write is logged and
rolled back without changing the response.

  entity_id_key   key of the returned JSON used as entity_id
  entity_id_arg   view argument used when entity_id_key is absent from the body
  meta_keys       keys projected from the returned JSON into meta
  meta_builder    (data, view_kwargs) -> dict, replaces meta_keys
  diff_keys       keys compared between `before(view_kwargs)` and the returned JSON;
                  changed ones land in meta['changes']
  permissions     (data, view_kwargs) -> action ids stored as the permissions snapshot
"""
from __future__ import annotations
import logging
from functools import wraps
from typing import Any, Callable, Dict, Iterable, Optional

from ehs_roles import get_db
from ehs_roles.services.audit import add_audit

logger = logging.getLogger(__name__)


def _split_response(rv: Any):
    if isinstance(rv, tuple) and rv:
        status = rv[1] if len(rv) > 1 and isinstance(rv[1], int) else 200
        return rv[0], status
    return rv, 200


def _changes(before: Dict[str, Any], after: Dict[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    return {
        k: {'before': before[k], 'after': after[k]}
        for k in keys
        if k in before and k in after and before[k] != after[k]
    }


def audit_log(
    action: str,
    *,
    entity: str = 'Role',
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    meta_builder: Optional[Callable[[dict, dict], dict]] = None,
    diff_keys: Optional[Iterable[str]] = None,
    before: Optional[Callable[[dict], Dict[str, Any]]] = None,
    permissions: Optional[Callable[[dict, dict], Iterable[str]]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            snapshot = before(kwargs) if (diff_keys and before) else None
            rv = fn(*args, **kwargs)
            data, status = _split_response(rv)
            if status >= 400 or not isinstance(data, dict):
                return rv
            try:
                entity_id = data.get(entity_id_key) if entity_id_key in data else kwargs.get(entity_id_arg)
                if meta_builder:
                    meta = meta_builder(data, kwargs)
                else:
                    meta = {k: data[k] for k in (meta_keys or ()) if k in data}
                if diff_keys and snapshot:
                    changed = _changes(snapshot, data, diff_keys)
                    if changed:
                        meta['changes'] = changed
                granted = permissions(data, kwargs) if permissions else None
                add_audit(action, entity, entity_id, meta, granted)
                get_db().commit()
            except Exception:
                logger.exception('Audit %s failed; response unaffected', action)
                get_db().rollback()
            return rv
        return wrapper
    return outer
