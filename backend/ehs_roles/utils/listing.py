"""Paginated, cache-validated JSON listings.

A listing is fingerprinted by the ids on the returned page, the collection size, the
window, the newest `updated_at` across the whole collection and a caller-supplied
variant string (query parameters that change the rendering). Clients may revalidate
with If-None-Match or If-Modified-Since; If-None-Match wins when both are sent.
"""
from __future__ import annotations
import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Iterable, List, Optional
from flask import abort, make_response, request
from ehs_roles.config.roles import LIST_DEFAULT_LIMIT, LIST_MAX_LIMIT

# Last-Modified only has whole-second precision
TIMESTAMP_TOLERANCE = timedelta(seconds=1)


def _to_utc_second(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0)


def _iso_z(dt: datetime) -> str:
    return dt.isoformat().replace('+00:00', 'Z')


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """ISO-8601 first, then RFC 1123 HTTP-date; None when neither parses."""
    if not value:
        return None
    try:
        return _to_utc_second(datetime.fromisoformat(value.replace('Z', '+00:00')))
    except ValueError:
        pass
    try:
        return _to_utc_second(parsedate_to_datetime(value))
    except (TypeError, ValueError):
        return None


def newest(values: Iterable[Optional[str]]) -> Optional[datetime]:
    stamps = [dt for dt in map(parse_timestamp, values) if dt is not None]
    return max(stamps, default=None)


def read_window() -> tuple:
    """(limit, offset) from the query string, clamped; aborts 400 on non-integers."""
    raw_limit, raw_offset = request.args.get('limit'), request.args.get('offset')
    try:
        limit = int(raw_limit) if raw_limit not in (None, '') else LIST_DEFAULT_LIMIT
        offset = int(raw_offset) if raw_offset not in (None, '') else 0
    except ValueError:
        abort(400, description='limit/offset must be int')
    return max(1, min(limit, LIST_MAX_LIMIT)), max(0, offset)


@dataclass
class ListPage:
    rows: List[dict]
    total: int
    limit: int
    offset: int
    last_modified: Optional[datetime]
    variant: str = ''

    @property
    def etag(self) -> str:
        stamp = _iso_z(self.last_modified) if self.last_modified else ''
        ids = [r.get('id') for r in self.rows]
        seed = f"{ids}|{self.total}|{self.limit}|{self.offset}|{stamp}|{self.variant}"
        return hashlib.sha256(seed.encode()).hexdigest()[:32]

    def body(self) -> dict:
        return {
            'data': self.rows,
            'pagination': {
                'total': self.total,
                'limit': self.limit,
                'offset': self.offset,
                'returned': len(self.rows),
            },
        }

    def _stamp_headers(self, resp):
        resp.headers['ETag'] = self.etag
        if self.last_modified:
            resp.headers['Last-Modified'] = format_datetime(self.last_modified, usegmt=True)
            resp.headers['X-Last-Modified-ISO'] = _iso_z(self.last_modified)
        return resp

    def is_fresh_for_client(self) -> bool:
        inm = request.headers.get('If-None-Match')
        if inm:
            return inm.strip('"') == self.etag
        since = parse_timestamp(request.headers.get('If-Modified-Since'))
        if since is None or self.last_modified is None:
            return False
        return self.last_modified <= since + TIMESTAMP_TOLERANCE

    def to_response(self):
        if self.is_fresh_for_client():
            return self._stamp_headers(make_response('', 304))
        return self._stamp_headers(make_response(self.body()))


def list_response(rows: List[dict], variant: str = '', stamp_key: str = 'updated_at'):
    """Window `rows` per the request and answer 200 or 304."""
    limit, offset = read_window()
    page = ListPage(
        rows=rows[offset:offset + limit],
        total=len(rows),
        limit=limit,
        offset=offset,
        last_modified=newest(r.get(stamp_key) for r in rows),
        variant=variant,
    )
    return page.to_response()


__all__ = ['ListPage', 'list_response', 'newest', 'parse_timestamp', 'read_window']
