"""
Infrastructure: GitHub Contents Client

Concrete implementation of IRemoteObjectClient over the GitHub contents
API using aiohttp. Owns retry/backoff for transient failures; every other
failure is mapped onto the domain error taxonomy and propagates.
"""

import asyncio
import base64
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError as PydanticValidationError

from gitmemo.domain.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    StoreError,
    TransientError,
    ValidationError,
)
from gitmemo.domain.memos.repositories import DirEntry, RemoteObject, EXPECT_ABSENT
from gitmemo.logging_utils import StructuredLogger, ComponentType
from gitmemo.models import ContentPayload, DirEntryPayload, EventType

JSON_MEDIA_TYPE = "application/vnd.github+json"
RAW_MEDIA_TYPE = "application/vnd.github.raw+json"


@dataclass
class HttpResponse:
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8")) if self.body else None

    def error_message(self) -> str:
        try:
            data = self.json()
        except (ValueError, UnicodeDecodeError):
            data = None
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return self.body[:200].decode("utf-8", errors="replace")


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Retry-After in seconds; HTTP-date and junk values are ignored."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return max(0.0, seconds)


class GitHubContentsClient:
    """
    Authenticated client for one repository branch.

    Supports the async context manager protocol; a session passed in is
    borrowed and left open on close.
    """

    def __init__(
        self,
        token: Optional[str],
        owner: str,
        repo: str,
        branch: str = "main",
        api_url: str = "https://api.github.com",
        api_version: str = "2022-11-28",
        user_agent: str = "gitmemo",
        timeout: float = 30.0,
        retries: int = 3,
        initial_delay: float = 1.0,
        max_delay: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
        trace_id: str = "-",
    ):
        """
        Initialize contents client.

        Args:
            token: Access token (None for anonymous reads)
            owner: Repository owner
            repo: Repository name
            branch: Branch every read and write targets
            api_url: API base URL
            timeout: Per-request timeout in seconds
            retries: Retries after the first attempt for transient failures
            initial_delay: Base backoff delay in seconds
            max_delay: Backoff cap in seconds
            session: Optional shared aiohttp session
            trace_id: Correlation ID for logs
        """
        self.token = token
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.api_url = api_url.rstrip("/")
        self.api_version = api_version
        self.user_agent = user_agent
        self.timeout = timeout
        self.retries = max(0, retries)
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.trace_id = trace_id

        self._session = session
        self._owns_session = session is None
        self.logger = StructuredLogger(ComponentType.REMOTE_CLIENT)

    @classmethod
    def from_settings(cls, settings, token: Optional[str], **kwargs: Any) -> "GitHubContentsClient":
        return cls(
            token=token,
            owner=settings.remote.owner,
            repo=settings.remote.repo,
            branch=settings.remote.branch,
            api_url=settings.remote.api_url,
            api_version=settings.remote.api_version,
            user_agent=settings.remote.user_agent,
            timeout=settings.remote.timeout_seconds,
            retries=settings.retry.retries,
            initial_delay=settings.retry.initial_delay_seconds,
            max_delay=settings.retry.max_delay_seconds,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # IRemoteObjectClient
    # ------------------------------------------------------------------

    async def get_text(self, path: str) -> Tuple[str, str]:
        obj = await self.get_bytes(path)
        return obj.text, obj.version

    async def get_bytes(self, path: str) -> RemoteObject:
        response = await self._request_with_retry("GET", path, params={"ref": self.branch})
        data = response.json()
        if not isinstance(data, dict):
            raise ValidationError("Path is a directory, not a file", context={"path": path})
        try:
            payload = ContentPayload.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Unexpected contents response: {e}", context={"path": path}) from e

        if payload.encoding == "base64" and payload.content:
            content = base64.b64decode(payload.content)
        elif payload.size == 0:
            content = b""
        else:
            # Large files come back without inline content
            raw = await self._request_with_retry(
                "GET", path, params={"ref": self.branch}, accept=RAW_MEDIA_TYPE
            )
            content = raw.body

        return RemoteObject(content=content, version=payload.sha)

    async def put_text(
        self, path: str, content: str, message: str, expected_version: Optional[str] = None
    ) -> str:
        return await self.put_bytes(path, content.encode("utf-8"), message, expected_version)

    async def put_bytes(
        self, path: str, content: bytes, message: str, expected_version: Optional[str] = None
    ) -> str:
        if expected_version is None:
            sha = await self._current_version(path)
        elif expected_version == EXPECT_ABSENT:
            sha = None
        else:
            sha = expected_version

        body = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.branch,
        }
        if sha:
            body["sha"] = sha

        response = await self._request_with_retry("PUT", path, json_body=body)
        data = response.json() or {}
        new_version = (data.get("content") or {}).get("sha")
        if not new_version:
            raise StoreError("Write response carried no version", context={"path": path})

        self.logger.log_message(
            trace_id=self.trace_id,
            direction="response",
            message_type="object_put",
            payload={"path": path, "version": new_version},
            metadata={"bytes": len(content), "checked": expected_version is not None},
        )
        return new_version

    async def delete_object(
        self, path: str, message: str, expected_version: Optional[str] = None
    ) -> bool:
        sha = expected_version
        if sha is None:
            sha = await self._current_version(path)
            if sha is None:
                return False

        body = {"message": message, "sha": sha, "branch": self.branch}
        try:
            await self._request_with_retry("DELETE", path, json_body=body)
        except NotFoundError:
            return False
        return True

    async def list_dir(self, path: str) -> List[DirEntry]:
        try:
            response = await self._request_with_retry("GET", path, params={"ref": self.branch})
        except NotFoundError:
            return []

        data = response.json()
        if not isinstance(data, list):
            return []

        entries = []
        for item in data:
            try:
                entry = DirEntryPayload.model_validate(item)
            except PydanticValidationError as e:
                self.logger.logger.warning(f"Skipping malformed listing entry in {path}: {e}")
                continue
            entries.append(DirEntry(name=entry.name, path=entry.path, type=entry.type))
        return entries

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def compute_delay(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """Backoff before retry number attempt+1 (attempt counts from 0)."""
        if retry_after is not None:
            return min(retry_after, self.max_delay)
        return min(self.initial_delay * (2 ** attempt), self.max_delay)

    async def _current_version(self, path: str) -> Optional[str]:
        try:
            response = await self._request_with_retry("GET", path, params={"ref": self.branch})
        except NotFoundError:
            return None
        data = response.json()
        if isinstance(data, dict):
            return data.get("sha")
        return None

    async def _request_with_retry(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        accept: str = JSON_MEDIA_TYPE,
    ) -> HttpResponse:
        """
        Send a request, retrying transient failures with exponential backoff.

        Raises:
            TransientError: after the last retry
            StoreError subclasses: immediately, for non-transient failures
        """
        last_error: Optional[TransientError] = None

        for attempt in range(self.retries + 1):
            try:
                response = await self._send(method, path, params, json_body, accept)
                self._raise_for_status(response, method, path)
                return response
            except TransientError as e:
                last_error = e
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = TransientError(f"Network error: {str(e) or type(e).__name__}")

            if attempt >= self.retries:
                break

            delay = self.compute_delay(attempt, last_error.retry_after)
            self.logger.logger.warning(
                f"Retrying {method} {path} after {delay:.2f}s "
                f"(attempt {attempt + 1}/{self.retries}): {last_error.message}"
            )
            self.logger.log_event(
                trace_id=self.trace_id,
                event_type=EventType.RETRY_SCHEDULED,
                payload={"method": method, "path": path, "error": last_error.message},
                metrics={"attempt": attempt + 1, "delay_seconds": delay},
            )
            await asyncio.sleep(delay)

        raise last_error.with_context(method=method, path=path, attempts=self.retries + 1)

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]],
        json_body: Optional[Dict[str, Any]],
        accept: str,
    ) -> HttpResponse:
        session = self._get_session()
        self.logger.log_message(
            trace_id=self.trace_id,
            direction="request",
            message_type=f"contents_{method.lower()}",
            payload={"path": path, "params": params or {}},
            metadata={"repo": f"{self.owner}/{self.repo}", "branch": self.branch},
        )
        async with session.request(
            method,
            self._url(path),
            params=params,
            json=json_body,
            headers=self._headers(accept),
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            body = await response.read()
            headers = {k.lower(): v for k, v in response.headers.items()}
            return HttpResponse(status=response.status, headers=headers, body=body)

    def _raise_for_status(self, response: HttpResponse, method: str, path: str) -> None:
        status = response.status
        if 200 <= status < 300:
            return

        message = response.error_message()
        context = {"method": method, "path": path}

        if status == 401:
            raise AuthError(f"Invalid token: {message}", status=status, context=context)
        if status == 403:
            if response.headers.get("x-ratelimit-remaining") == "0" or "rate limit" in message.lower():
                raise RateLimitError(f"Rate limit exceeded: {message}", status=status, context=context)
            raise PermissionDeniedError(f"Permission denied: {message}", status=status, context=context)
        if status == 404:
            raise NotFoundError(f"Not found: {path}", status=status, context=context)
        if status == 409:
            raise ConflictError(f"Version conflict: {message}", status=status, context=context)
        if status == 422:
            if "sha" in message.lower():
                raise ConflictError(f"Version conflict: {message}", status=status, context=context)
            raise ValidationError(f"Rejected by remote: {message}", status=status, context=context)
        if status == 429 or status >= 500:
            raise TransientError(
                f"Remote returned {status}: {message}",
                retry_after=parse_retry_after(response.headers.get("retry-after")),
                status=status,
                context=context,
            )
        raise StoreError(f"Remote returned {status}: {message}", status=status, context=context)

    def _url(self, path: str) -> str:
        clean = quote(path.strip("/"), safe="/")
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{clean}"

    def _headers(self, accept: str) -> Dict[str, str]:
        headers = {
            "Accept": accept,
            "X-GitHub-Api-Version": self.api_version,
            "User-Agent": self.user_agent,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self):
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
