"""REST client for the hosted database.

Handles credential loading and turns queued mutations into PostgREST
requests. Zero queue coupling: the client knows nothing about retries or
ordering, it sends one mutation and reports how that went.
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional

import httpx

from chronyx.config import Settings, get_settings
from chronyx.core.validation import validate_backend_url, validate_table_name
from chronyx.protocols import (
    MissingMatchFieldError,
    MutationRejected,
    RemoteConfigError,
    UnknownOperationError,
)
from chronyx.types import MutationOperation, QueuedMutation

logger = logging.getLogger(__name__)

REST_PATH = "/rest/v1"

PREFER_MINIMAL = "return=minimal"
PREFER_REPRESENTATION = "return=representation"
MERGE_DUPLICATES = "resolution=merge-duplicates"


def format_filter_value(value: Any) -> str:
    """Render a match value the way it appears in an ``eq.`` filter."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class RestClient:
    """Async client for the hosted database's auto-generated REST API.

    Args:
        supabase_url: Project URL. Falls back to settings, then credentials.json.
        api_key: Publishable API key, same fallbacks as ``supabase_url``.
        timeout: Per-request timeout in seconds (default: settings.request_timeout).
        transport: Optional httpx transport, used by tests.
        settings: Settings instance to read defaults from.
    """

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[Settings] = None,
    ):
        self._explicit_url = supabase_url
        self._explicit_key = api_key
        self._settings = settings
        self._timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None
        self._http_loop: Optional[asyncio.AbstractEventLoop] = None
        self._credentials: Optional[Dict[str, str]] = None
        self._credentials_loaded = False

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def timeout(self) -> float:
        return self._timeout if self._timeout is not None else self.settings.request_timeout

    # === Credentials ===

    def _load_credentials(self) -> Optional[Dict[str, str]]:
        """Resolve the project URL and API key.

        Priority:
        1. Constructor arguments
        2. Settings (CHRONYX_SUPABASE_URL, CHRONYX_SUPABASE_PUBLISHABLE_KEY)
        3. <data dir>/credentials.json

        Returns:
            Dict with 'supabase_url' and 'api_key', or None if not configured.
        """
        if self._credentials_loaded:
            return self._credentials

        self._credentials_loaded = True
        url = self._explicit_url or self.settings.supabase_url
        key = self._explicit_key or self.settings.supabase_publishable_key

        if not url or not key:
            credentials_path = self.settings.resolved_data_dir / "credentials.json"
            if credentials_path.exists():
                try:
                    with open(credentials_path) as f:
                        creds = json.load(f)
                    url = url or creds.get("supabase_url")
                    key = key or creds.get("supabase_publishable_key") or creds.get("api_key")
                except (json.JSONDecodeError, OSError) as e:
                    logger.debug(f"Failed to load credentials file: {e}")

        if url:
            url = validate_backend_url(url)

        if url and key:
            self._credentials = {"supabase_url": url.rstrip("/"), "api_key": key}
        else:
            self._credentials = None
        return self._credentials

    def has_credentials(self) -> bool:
        return self._load_credentials() is not None

    @property
    def base_url(self) -> Optional[str]:
        creds = self._load_credentials()
        return f"{creds['supabase_url']}{REST_PATH}" if creds else None

    def _require_credentials(self) -> Dict[str, str]:
        creds = self._load_credentials()
        if not creds:
            raise RemoteConfigError("Missing Supabase credentials")
        return creds

    # === HTTP ===

    @staticmethod
    def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def _client(self) -> httpx.AsyncClient:
        """The shared AsyncClient for the current event loop.

        Pooled connections belong to the loop that opened them, so a client
        created under an earlier ``asyncio.run`` is replaced rather than reused.
        """
        loop = self._running_loop()
        if self._http is not None and loop is not None and self._http_loop is not loop:
            logger.debug("Event loop changed, recreating HTTP client")
            self._http = None
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
            self._http_loop = loop
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            # A client from a finished loop cannot be closed from this one
            if self._http_loop in (None, self._running_loop()):
                await self._http.aclose()
            self._http = None
            self._http_loop = None

    async def __aenter__(self) -> "RestClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def build_request(self, mutation: QueuedMutation, *, returning: bool = False) -> httpx.Request:
        """Translate a mutation into a REST request.

        Raises:
            RemoteConfigError: URL or key missing.
            MissingMatchFieldError: update/delete without a row filter.
            UnknownOperationError: operation outside the four known ones.
            ValueError: table name unsafe for a URL path.
        """
        creds = self._require_credentials()
        table = validate_table_name(mutation.table)
        url = f"{creds['supabase_url']}{REST_PATH}/{table}"
        prefer = PREFER_REPRESENTATION if returning else PREFER_MINIMAL
        headers = {
            "Content-Type": "application/json",
            "apikey": creds["api_key"],
            "Authorization": f"Bearer {creds['api_key']}",
        }

        operation = mutation.operation
        params = None
        if operation in (MutationOperation.UPDATE.value, MutationOperation.DELETE.value):
            if not mutation.has_match:
                raise MissingMatchFieldError(
                    f"{operation.capitalize()} requires matchColumn and matchValue"
                )
            params = {mutation.match_column: f"eq.{format_filter_value(mutation.match_value)}"}

        if operation == MutationOperation.INSERT.value:
            method, body = "POST", mutation.data
        elif operation == MutationOperation.UPDATE.value:
            method, body = "PATCH", mutation.data
        elif operation == MutationOperation.DELETE.value:
            method, body = "DELETE", None
            prefer = PREFER_MINIMAL
        elif operation == MutationOperation.UPSERT.value:
            method, body = "POST", mutation.data
            prefer = f"{MERGE_DUPLICATES},{prefer}"
        else:
            raise UnknownOperationError(f"Unknown operation: {operation!r}")

        headers["Prefer"] = prefer
        return self._client().build_request(
            method,
            url,
            params=params,
            headers=headers,
            json=body,
        )

    async def send(self, mutation: QueuedMutation, *, returning: bool = False) -> Optional[Any]:
        """Send one mutation.

        Returns:
            With ``returning=True``, the first row the store echoed back (or
            None). Otherwise None.

        Raises:
            MutationRejected: non-2xx response.
            httpx.TransportError: network unreachable, DNS failure, timeout.
            Plus everything ``build_request`` raises.
        """
        request = self.build_request(mutation, returning=returning)
        response = await self._client().send(request)

        if not response.is_success:
            raise MutationRejected(response.status_code, response.text)

        if not returning or not response.content:
            return None
        try:
            result = response.json()
        except json.JSONDecodeError:
            logger.debug(f"Non-JSON body for {mutation.table} {mutation.operation}")
            return None
        if isinstance(result, list):
            return result[0] if result else None
        return result

    async def health_check(self, timeout: float = 3.0) -> Dict[str, Any]:
        """Test REST endpoint connectivity.

        Returns:
            Dict with keys:
            - 'healthy': bool indicating if the endpoint answered
            - 'latency_ms': response time in milliseconds (if healthy)
            - 'error': error message (if not healthy)
        """
        creds = self._load_credentials()
        if not creds:
            return {"healthy": False, "error": "No Supabase credentials configured"}

        start = time.monotonic()
        try:
            response = await self._client().head(
                f"{creds['supabase_url']}{REST_PATH}/",
                headers={"apikey": creds["api_key"]},
                timeout=timeout,
            )
        except httpx.HTTPError as e:
            logger.debug("Health check failed: %s", e)
            return {"healthy": False, "error": f"Connection failed: {e}"}

        latency_ms = (time.monotonic() - start) * 1000
        # Any HTTP answer proves reachability; 5xx means the service is down
        if response.status_code >= 500:
            return {"healthy": False, "error": f"HTTP {response.status_code}"}
        return {"healthy": True, "latency_ms": round(latency_ms, 2)}
