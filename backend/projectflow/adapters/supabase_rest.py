"""Shared PostgREST plumbing for the Supabase repositories."""

import base64
import json
import logging
import uuid
from typing import Any

import httpx

from projectflow.config import (
    get_supabase_access_token,
    get_supabase_anon_key,
    get_supabase_url,
)
from projectflow.infrastructure.retry import (
    DEFAULT_INITIAL_WAIT,
    DEFAULT_MAX_ATTEMPTS,
    PermanentError,
    TransientError,
    is_transient_status,
    retry_operation,
)
from projectflow.ports.task_repository import TaskRepositoryError

logger = logging.getLogger(__name__)


def as_uuid(value: str | None) -> str | None:
    """Return value if it is a UUID string, else None."""
    if not value:
        return None
    try:
        return str(uuid.UUID(value))
    except ValueError:
        return None


def jwt_subject(token: str | None) -> str | None:
    """Read the `sub` claim of a JWT without verifying it. None unless it is a UUID."""
    if not token or token.count(".") != 2:
        return None
    payload = token.split(".")[1]
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
    except ValueError:
        return None
    if not isinstance(claims, dict):
        return None
    return as_uuid(claims.get("sub"))


class SupabaseRestClient:
    """Base for repositories backed by Supabase's PostgREST API.

    Uses lazy client initialization for connection reuse. Transport errors,
    5xx and 429 responses are retried; other 4xx responses fail immediately.
    Subclasses set `error_class` to the error their port promises.
    """

    error_class: type[TaskRepositoryError] = TaskRepositoryError

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        access_token: str | None = None,
        timeout: float = 10.0,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_initial_wait: float = DEFAULT_INITIAL_WAIT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            url: Supabase project URL. Defaults to SUPABASE_URL env var.
            anon_key: Supabase anon key. Defaults to SUPABASE_ANON_KEY env var.
            access_token: User JWT sent as bearer. Defaults to
                SUPABASE_ACCESS_TOKEN, falling back to the anon key.
            timeout: Request timeout in seconds
            max_attempts: Attempts per request for transient failures
            retry_initial_wait: First backoff wait in seconds
            transport: Custom httpx transport (tests)
        """
        self._url = (url or get_supabase_url()).rstrip("/")
        self._anon_key = anon_key or get_supabase_anon_key()
        if not self._url or not self._anon_key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY environment variables required")
        self._access_token = access_token or get_supabase_access_token() or self._anon_key
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._retry_initial_wait = retry_initial_wait
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def owner_id(self, user_id: str | None) -> str | None:
        """Value for a user_id column.

        The given id when it is a UUID, otherwise the subject of the access
        token. None when neither is a real user, so the column stays NULL.
        """
        return as_uuid(user_id) or jwt_subject(self._access_token)

    async def _get_client(self) -> httpx.AsyncClient:
        """Lazy client initialization for connection reuse."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self._url}/rest/v1",
                headers={
                    "apikey": self._anon_key,
                    "Authorization": f"Bearer {self._access_token}",
                    "Content-Type": "application/json",
                    "Prefer": "return=representation",
                },
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def _send(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send one request.

        Raises:
            TransientError: On transport failures and retryable statuses
            PermanentError: On other error statuses
        """
        client = await self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise TransientError(f"Supabase request failed: {e}") from e

        if is_transient_status(response.status_code):
            raise TransientError(
                f"Supabase returned {response.status_code}", status_code=response.status_code
            )
        if response.status_code >= 400:
            raise PermanentError(
                f"Supabase rejected request ({response.status_code}): {response.text[:200]}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        return response.json()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request with retries for transient failures.

        Raises:
            TaskRepositoryError: When the request fails (as `error_class`)
        """
        try:
            return await retry_operation(
                self._send,
                method,
                path,
                max_attempts=self._max_attempts,
                initial_wait=self._retry_initial_wait,
                retryable_exceptions=(TransientError,),
                **kwargs,
            )
        except TransientError as e:
            logger.error(
                f"Supabase request failed after retries: {e}",
                extra={"method": method, "path": path},
            )
            raise self.error_class(str(e), status_code=e.status_code) from e
        except PermanentError as e:
            logger.error(
                f"Supabase request rejected: {e}",
                extra={"method": method, "path": path, "status_code": e.status_code},
            )
            raise self.error_class(str(e), status_code=e.status_code) from e

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
