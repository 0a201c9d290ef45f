"""
Record store client for a hosted PostgREST-compatible backend.

The hosted store offers per-statement atomicity only, so ``transaction()``
is the base no-op and callers must order their writes.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import requests

from .interfaces import COLLECTIONS, Record, RecordStore
from ..services.errors import CollectionUnavailableError, StoreError
from ..utils.date_range_utils import DateRangeUtils
from ..utils.query_builders import PostgrestQueryBuilder

logger = logging.getLogger(__name__)

# PostgREST / Postgres codes meaning "relation does not exist"
_MISSING_TABLE_CODES = {"42P01", "PGRST205"}


class PostgrestRecordStore(RecordStore):
    """Record store backed by the hosted REST API."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: int = 15,
        session: Optional[requests.Session] = None,
    ):
        if not base_url:
            raise StoreError("STORE_URL is required for the postgrest backend")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": service_key or "",
            "Authorization": f"Bearer {service_key or ''}",
            "Content-Type": "application/json",
        })

    def _url(self, collection: str) -> str:
        if collection not in COLLECTIONS:
            raise CollectionUnavailableError(collection)
        return f"{self.base_url}/rest/v1/{collection}"

    def _request(self, method: str, collection: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(
                method, self._url(collection), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.error(f"Store request {method} {collection} failed: {e}")
            raise StoreError(f"{collection}: {e}") from e

        if response.status_code >= 400:
            self._raise_for_error(collection, response)
        return response

    @staticmethod
    def _raise_for_error(collection: str, response: requests.Response) -> None:
        try:
            payload = response.json()
        except ValueError:
            payload = {"message": response.text}
        code = payload.get("code") if isinstance(payload, dict) else None
        if code in _MISSING_TABLE_CODES:
            raise CollectionUnavailableError(collection)
        message = payload.get("message") if isinstance(payload, dict) else payload
        raise StoreError(f"{collection}: HTTP {response.status_code} {code or ''} {message}".strip())

    @staticmethod
    def _serialize(record: Record) -> Record:
        return {
            k: DateRangeUtils.to_iso(v) if hasattr(v, "isoformat") else v
            for k, v in record.items()
        }

    @staticmethod
    def _filters(filters: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not filters:
            return filters
        return {
            k: DateRangeUtils.to_iso(v) if hasattr(v, "isoformat") else v
            for k, v in filters.items()
        }

    def select(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        params = PostgrestQueryBuilder.build_params(self._filters(filters), order, limit)
        response = self._request("GET", collection, params=params)
        return response.json()

    def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        params = PostgrestQueryBuilder.build_params(self._filters(filters), select="id", limit=1)
        response = self._request(
            "GET", collection, params=params, headers={"Prefer": "count=exact"}
        )
        # Content-Range: 0-0/42 or */0
        content_range = response.headers.get("Content-Range", "")
        total = content_range.rpartition("/")[2]
        if not total.isdigit():
            raise StoreError(f"{collection}: missing count in Content-Range '{content_range}'")
        return int(total)

    def insert(self, collection: str, records: Union[Record, List[Record]]) -> List[Record]:
        batch = [records] if isinstance(records, dict) else list(records)
        if not batch:
            return []
        response = self._request(
            "POST",
            collection,
            data=json.dumps([self._serialize(r) for r in batch], default=str),
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    def update(self, collection: str, patch: Record, filters: Dict[str, Any]) -> int:
        if not patch:
            return 0
        if not filters:
            raise StoreError(f"Refusing unfiltered update on {collection}")
        response = self._request(
            "PATCH",
            collection,
            params=PostgrestQueryBuilder.build_filter_params(self._filters(filters)),
            data=json.dumps(self._serialize(patch), default=str),
            headers={"Prefer": "return=representation"},
        )
        return len(response.json())

    def delete(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        # The REST layer rejects unfiltered deletes; match every row explicitly.
        params = PostgrestQueryBuilder.build_filter_params(self._filters(filters) or {"id__isnull": False})
        response = self._request(
            "DELETE", collection, params=params, headers={"Prefer": "return=representation"}
        )
        return len(response.json())
