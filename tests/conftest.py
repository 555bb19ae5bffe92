"""
Shared test fixtures and utilities for gitmemo tests
"""

import base64
import hashlib
import json
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set, Tuple
from urllib.parse import unquote

import pytest
from unittest.mock import AsyncMock, MagicMock

from gitmemo.domain.errors import ConflictError, NotFoundError, TransientError
from gitmemo.domain.memos.repositories import DirEntry, EXPECT_ABSENT, RemoteObject
from gitmemo.domain.memos.services import ShardKeyResolver, ShardLayout


class FrozenClock:
    """Settable clock for ShardKeyResolver."""

    def __init__(self, moment: datetime):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


class FakeObjectClient:
    """
    In-memory IRemoteObjectClient with the same version semantics as the
    GitHub client: versions are content hashes, expected_version=None
    overwrites, EXPECT_ABSENT creates only.
    """

    def __init__(self):
        self.objects: Dict[str, Tuple[bytes, str]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.messages: List[str] = []
        self.fail_deletes: Set[str] = set()
        self.before_put: Optional[Callable[[str], None]] = None
        self._counter = 0

    def seed(self, path: str, content, version: Optional[str] = None) -> str:
        data = content.encode("utf-8") if isinstance(content, str) else content
        version = version or self._version_for(data)
        self.objects[path] = (data, version)
        return version

    def text(self, path: str) -> str:
        return self.objects[path][0].decode("utf-8")

    def _version_for(self, data: bytes) -> str:
        self._counter += 1
        return hashlib.sha1(data + str(self._counter).encode()).hexdigest()[:12]

    async def get_text(self, path: str):
        obj = await self.get_bytes(path)
        return obj.text, obj.version

    async def get_bytes(self, path: str) -> RemoteObject:
        self.calls.append(("get", path))
        if path not in self.objects:
            raise NotFoundError(f"Not found: {path}", status=404, context={"path": path})
        data, version = self.objects[path]
        return RemoteObject(content=data, version=version)

    async def put_text(self, path, content, message, expected_version=None):
        return await self.put_bytes(path, content.encode("utf-8"), message, expected_version)

    async def put_bytes(self, path, content, message, expected_version=None):
        self.calls.append(("put", path))
        if self.before_put is not None:
            hook, self.before_put = self.before_put, None
            hook(path)

        current = self.objects.get(path)
        if expected_version == EXPECT_ABSENT and current is not None:
            raise ConflictError("Version conflict: object exists", status=422, context={"path": path})
        if expected_version not in (None, EXPECT_ABSENT):
            if current is None or current[1] != expected_version:
                raise ConflictError("Version conflict: sha mismatch", status=409, context={"path": path})

        self.messages.append(message)
        return self.seed(path, content)

    async def delete_object(self, path, message, expected_version=None):
        self.calls.append(("delete", path))
        if path in self.fail_deletes:
            raise TransientError("Remote returned 502: bad gateway", status=502, context={"path": path})
        if path not in self.objects:
            return False
        self.messages.append(message)
        del self.objects[path]
        return True

    async def list_dir(self, path):
        self.calls.append(("list", path))
        prefix = path.strip("/") + "/"
        entries = {}
        for key in self.objects:
            if not key.startswith(prefix):
                continue
            rest = key[len(prefix):]
            name = rest.split("/", 1)[0]
            kind = "dir" if "/" in rest else "file"
            entries[name] = DirEntry(name=name, path=prefix + name, type=kind)
        return [entries[name] for name in sorted(entries)]


def create_mock_aiohttp_response(status=200, json_data=None, body=None, headers=None):
    """
    Helper to create a mocked aiohttp response usable as
    `async with session.request(...) as response`.

    Returns:
        Tuple of (mock_request_context, mock_response)
    """
    mock_response = MagicMock()
    mock_response.status = status
    mock_response.headers = headers or {}
    if body is None:
        body = json.dumps(json_data).encode("utf-8") if json_data is not None else b""
    mock_response.read = AsyncMock(return_value=body)

    mock_request_context = AsyncMock()
    mock_request_context.__aenter__.return_value = mock_response
    mock_request_context.__aexit__.return_value = None

    return mock_request_context, mock_response


def create_mock_session(*responses):
    """
    Mock aiohttp session whose request() answers with the given
    (status, json_data[, headers[, raw_body]]) tuples in order. Exceptions
    in the sequence are raised instead.
    """
    side_effects = []
    for item in responses:
        if isinstance(item, BaseException):
            side_effects.append(item)
            continue
        status, json_data, *rest = item
        context, _ = create_mock_aiohttp_response(
            status=status,
            json_data=json_data,
            headers=rest[0] if rest else None,
            body=rest[1] if len(rest) > 1 else None,
        )
        side_effects.append(context)

    mock_session = MagicMock()
    mock_session.request.side_effect = side_effects
    mock_session.close = AsyncMock()
    return mock_session


@pytest.fixture
def fake_client():
    return FakeObjectClient()


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 3, 1, 10, 0, 0))


@pytest.fixture
def resolver(clock):
    return ShardKeyResolver("Asia/Shanghai", clock=clock)


@pytest.fixture
def layout():
    return ShardLayout("data/memos", "memos-", ".json")


class FakeGitHubResponse:
    def __init__(self, status: int, data: Any = None, body: Optional[bytes] = None, headers=None):
        self.status = status
        self.headers = headers or {}
        if body is None:
            body = json.dumps(data).encode("utf-8") if data is not None else b""
        self._body = body

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


class FakeGitHubSession:
    """
    Stand-in for aiohttp.ClientSession that answers like the GitHub
    contents API for a single repository held in memory.
    """

    def __init__(self):
        self.files: Dict[str, Tuple[bytes, str]] = {}
        self.requests: List[Tuple[str, str]] = []
        self.commits: List[str] = []
        self.fail_next: List[FakeGitHubResponse] = []
        self.lost_responses: Dict[str, int] = {}
        self._counter = 0

    def seed(self, path: str, content) -> str:
        data = content.encode("utf-8") if isinstance(content, str) else content
        self._counter += 1
        sha = hashlib.sha1(data + str(self._counter).encode()).hexdigest()
        self.files[path] = (data, sha)
        return sha

    def text(self, path: str) -> str:
        return self.files[path][0].decode("utf-8")

    def fail_with(self, status: int, message: str, headers=None) -> None:
        """Answer the next request with an error, whatever it asks for."""
        self.fail_next.append(FakeGitHubResponse(status, {"message": message}, headers=headers))

    def lose_next_response(self, path: str, status: int = 502) -> None:
        """Commit the next PUT to path but answer it with an error status."""
        self.lost_responses[path] = status

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        path = unquote(url.split("/contents/", 1)[1]).strip("/")
        self.requests.append((method, path))
        if self.fail_next:
            return self.fail_next.pop(0)
        if method == "GET":
            return self._get(path, (headers or {}).get("Accept", ""))
        if method == "PUT":
            return self._put(path, json or {})
        if method == "DELETE":
            return self._delete(path, json or {})
        return FakeGitHubResponse(405, {"message": "Method not allowed"})

    async def close(self):
        return None

    def _get(self, path: str, accept: str) -> FakeGitHubResponse:
        if path in self.files:
            data, sha = self.files[path]
            if "raw" in accept:
                return FakeGitHubResponse(200, body=data)
            return FakeGitHubResponse(200, {
                "name": path.rsplit("/", 1)[-1],
                "path": path,
                "sha": sha,
                "size": len(data),
                "type": "file",
                "encoding": "base64",
                "content": base64.b64encode(data).decode("ascii"),
            })

        prefix = path + "/"
        entries = {}
        for key in self.files:
            if key.startswith(prefix):
                rest = key[len(prefix):]
                name = rest.split("/", 1)[0]
                entries[name] = {
                    "name": name,
                    "path": prefix + name,
                    "type": "dir" if "/" in rest else "file",
                    "sha": "x",
                }
        if entries:
            return FakeGitHubResponse(200, [entries[name] for name in sorted(entries)])
        return FakeGitHubResponse(404, {"message": "Not Found"})

    def _put(self, path: str, body: Dict[str, Any]) -> FakeGitHubResponse:
        current = self.files.get(path)
        sha = body.get("sha")
        if current is not None and not sha:
            return FakeGitHubResponse(422, {"message": "Invalid request.\n\n\"sha\" wasn't supplied."})
        if current is not None and sha != current[1]:
            return FakeGitHubResponse(409, {"message": f"{path} does not match {sha}"})
        if current is None and sha:
            return FakeGitHubResponse(422, {"message": "sha does not match any file"})

        new_sha = self.seed(path, base64.b64decode(body["content"]))
        self.commits.append(body["message"])
        if path in self.lost_responses:
            return FakeGitHubResponse(self.lost_responses.pop(path), {"message": "Bad Gateway"})
        return FakeGitHubResponse(201 if current is None else 200, {
            "content": {"path": path, "sha": new_sha},
            "commit": {"message": body["message"]},
        })

    def _delete(self, path: str, body: Dict[str, Any]) -> FakeGitHubResponse:
        current = self.files.get(path)
        if current is None:
            return FakeGitHubResponse(404, {"message": "Not Found"})
        if body.get("sha") != current[1]:
            return FakeGitHubResponse(409, {"message": f"{path} does not match {body.get('sha')}"})
        del self.files[path]
        self.commits.append(body["message"])
        return FakeGitHubResponse(200, {"content": None, "commit": {"message": body["message"]}})


@pytest.fixture
def make_session():
    """Factory fixture: make_session((200, {...}), (404, {...}), ...)."""
    return create_mock_session


@pytest.fixture
def github_session():
    return FakeGitHubSession()
