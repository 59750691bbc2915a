"""Record store for the live database's PostgREST (Supabase) API."""

import time
import logging
import requests
from typing import Any, Dict, Optional
from datetime import datetime

from .base import RecordStore, StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)


class RestRecordStore(RecordStore):
    """
    Record store talking to a PostgREST endpoint (`/rest/v1/<table>`).

    Filters use PostgREST syntax (`?field=eq.value`), inserts POST the row,
    updates PATCH by `id`. Requests are rate limited client side.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        audit_table: str = "user_activities",
        dry_run: bool = False,
        rate_limit: float = 10.0,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the REST store.

        Args:
            base_url: Project URL, e.g. https://xyz.supabase.co
            api_key: Service key sent as `apikey` and bearer token
            audit_table: Table receiving audit entries
            dry_run: If True, perform lookups but simulate writes
            rate_limit: Max requests per second
            timeout: Per-request timeout in seconds
            session: Pre-built session (mainly for tests)
        """
        super().__init__(dry_run=dry_run)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.audit_table = audit_table
        self.rate_limit = rate_limit
        self.timeout = timeout
        self._last_request_time = 0.0
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with authentication."""
        session = requests.Session()

        if self.api_key:
            session.headers["apikey"] = self.api_key
            session.headers["Authorization"] = f"Bearer {self.api_key}"

        session.headers["Content-Type"] = "application/json"
        session.headers["Prefer"] = "return=representation"

        return session

    def _rate_limit_wait(self):
        """Wait to respect rate limits."""
        if self.rate_limit > 0:
            elapsed = time.time() - self._last_request_time
            wait_time = (1.0 / self.rate_limit) - elapsed
            if wait_time > 0:
                time.sleep(wait_time)
        self._last_request_time = time.time()

    def _table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _request(self, method: str, url: str, **kwargs) -> Any:
        """Send a request and return its decoded JSON body; raise StoreError on failure."""
        self._rate_limit_wait()

        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise StoreError(self._error_message(e.response)) from e
        except requests.exceptions.ConnectionError as e:
            raise StoreUnavailableError(f"Cannot reach {self.base_url}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise StoreError(str(e)) from e

        if not response.text:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"Invalid JSON response from {url}: {e}") from e

    def _error_message(self, response: Optional[requests.Response]) -> str:
        """Pull PostgREST's `message` out of an error response when there is one."""
        if response is None:
            return "Request failed"
        try:
            error_data = response.json()
        except ValueError:
            return f"HTTP {response.status_code}: {response.text}"
        if isinstance(error_data, dict):
            return error_data.get("message") or error_data.get("error") or str(error_data)
        return str(error_data)

    def lookup(self, table: str, field: str, value: Any) -> Optional[Dict[str, Any]]:
        rows = self._request(
            "GET",
            self._table_url(table),
            params={field: f"eq.{value}", "select": "id", "limit": "1"},
        )
        if rows:
            return rows[0]
        return None

    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        if self.dry_run:
            logger.info(f"Dry run: would insert into {table}")
            return dict(record)

        rows = self._request("POST", self._table_url(table), json=record)
        return rows[0] if rows else dict(record)

    def update(self, table: str, row_id: Any, record: Dict[str, Any]) -> Dict[str, Any]:
        if self.dry_run:
            logger.info(f"Dry run: would update {table} row {row_id}")
            return {**record, "id": row_id}

        rows = self._request(
            "PATCH",
            self._table_url(table),
            params={"id": f"eq.{row_id}"},
            json=record,
        )
        if not rows:
            raise StoreError(f"No row in {table} with id {row_id}")
        return rows[0]

    def append_audit_entry(self, entry: Dict[str, Any]) -> None:
        if self.dry_run:
            logger.info(f"Dry run: would log activity {entry.get('action')}")
            return

        payload = dict(entry)
        payload.setdefault("created_at", datetime.utcnow().isoformat())
        self._request("POST", self._table_url(self.audit_table), json=payload)

    def validate_connection(self) -> bool:
        """Validate connection to the REST endpoint."""
        try:
            self._rate_limit_wait()
            response = self._session.get(f"{self.base_url}/rest/v1/", timeout=self.timeout)
            return response.status_code < 500
        except requests.exceptions.RequestException as e:
            logger.error(f"Store connection validation failed: {e}")
            return False
