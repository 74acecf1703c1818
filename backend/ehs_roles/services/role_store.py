"""Storage ports for the role collection.

A store reads and writes the whole collection at once; there is no partial update.
`load()` returns whatever was persisted (None when nothing was) and may raise on
unreadable data; the repository treats both as "seed me". `save()` raises
StoreWriteError when the write did not land.
"""
from __future__ import annotations
import copy
import json
from typing import Any, Callable, Dict, Optional, Protocol
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from ehs_roles.config.roles import ROLE_STORE_KEY
from ehs_roles.models.role_store import RoleStoreRecord
from ehs_roles.services.errors import StoreWriteError


class RoleStore(Protocol):
    def load(self) -> Any: ...
    def save(self, payload: Dict[str, Any]) -> None: ...


class MemoryRoleStore:
    """Process-local store; deep copies on both sides so callers never alias stored data."""

    def __init__(self, payload: Any = None):
        self._payload = copy.deepcopy(payload)
        self.saves = 0

    def load(self) -> Any:
        return copy.deepcopy(self._payload)

    def save(self, payload: Dict[str, Any]) -> None:
        self._payload = copy.deepcopy(payload)
        self.saves += 1


class SqlRoleStore:
    """Keeps the collection as JSON text in one `role_store_records` row."""

    def __init__(self, session_factory: Callable[[], Any], key: str = ROLE_STORE_KEY):
        self.session_factory = session_factory
        self.key = key

    def load(self) -> Optional[Any]:
        session = self.session_factory()
        record = session.execute(select(RoleStoreRecord).where(RoleStoreRecord.key == self.key)).scalar_one_or_none()
        if record is None or not record.payload:
            return None
        return json.loads(record.payload)

    def save(self, payload: Dict[str, Any]) -> None:
        session = self.session_factory()
        try:
            body = json.dumps(payload, sort_keys=True)
            record = session.get(RoleStoreRecord, self.key)
            if record is None:
                session.add(RoleStoreRecord(key=self.key, payload=body))
            else:
                record.payload = body
                record.updated_at = func.now()
            session.commit()
        except (SQLAlchemyError, TypeError, ValueError) as e:
            session.rollback()
            raise StoreWriteError(f'Failed to persist role store {self.key!r}: {e}') from e


__all__ = ['RoleStore', 'MemoryRoleStore', 'SqlRoleStore']
