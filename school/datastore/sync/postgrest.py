"""
PostgREST (Supabase) remote document store.

The snapshot is stored as one row of the ``school_data`` table:

    id          bigint primary key      (always 1)
    content     jsonb                   (the snapshot document)
    updated_at  timestamptz

Requests:
    GET  /rest/v1/school_data?id=eq.1&select=content,updated_at
    POST /rest/v1/school_data   Prefer: resolution=merge-duplicates

Both send the project key as ``apikey`` and as a bearer token. The key must
be the anon/public key; a rejected key is reported as unauthorized.

Invariants:
    - No timeout policy beyond httpx defaults
    - Every failure leaves this module as RemoteUnauthorizedError or
      RemoteNetworkError
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from ..errors import RemoteNetworkError, RemoteSyncError
from ..models import RemoteCredentials
from .base import DEFAULT_TABLE, RemoteDocument, classify_remote_error

logger = logging.getLogger(__name__)

REST_PREFIX = "/rest/v1"


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body.get("hint") or body)
    return str(body)


class PostgrestDocumentStore:
    """RemoteDocumentStore over the PostgREST HTTP API.

    Args:
        credentials: Project URL and anon key
        table: Table holding the snapshot row
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        credentials: RemoteCredentials,
        table: str = DEFAULT_TABLE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.table = table
        self.endpoint = credentials.endpoint.strip().rstrip("/")
        key = credentials.key.strip()
        try:
            self._client = httpx.AsyncClient(
                base_url=self.endpoint + REST_PREFIX,
                headers={
                    "apikey": key,
                    "Authorization": f"Bearer {key}",
                    "Accept": "application/json",
                },
                transport=transport,
            )
        except (httpx.InvalidURL, ValueError) as e:
            raise RemoteNetworkError(f"Invalid remote endpoint: {e}") from e

    async def select(self, document_id: Any) -> Optional[RemoteDocument]:
        response = await self._request(
            "GET",
            f"/{self.table}",
            params={"id": f"eq.{document_id}", "select": "content,updated_at"},
        )
        try:
            rows = response.json()
        except ValueError as e:
            raise RemoteNetworkError(f"Malformed response from remote: {e}") from e

        if not isinstance(rows, list) or not rows:
            return None
        row = rows[0] if isinstance(rows[0], dict) else {}
        return RemoteDocument(
            document_id=document_id,
            content=row.get("content"),
            updated_at=_parse_timestamp(row.get("updated_at")),
        )

    async def upsert(self, document_id: Any, content: Any, updated_at: datetime) -> None:
        await self._request(
            "POST",
            f"/{self.table}",
            json=[
                {
                    "id": document_id,
                    "content": content,
                    "updated_at": updated_at.isoformat(),
                }
            ],
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(
                "Remote request failed",
                extra={"method": method, "path": path, "error": str(e)},
            )
            raise RemoteNetworkError(f"Remote request failed: {e}") from e

        if response.status_code >= 400:
            error: RemoteSyncError = classify_remote_error(
                str(response.status_code), _error_message(response)
            )
            logger.warning(
                "Remote request rejected",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "error_code": error.code,
                },
            )
            raise error
        return response
