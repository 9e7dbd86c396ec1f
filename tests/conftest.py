"""Shared fixtures: an in-memory backend and a runner whose jobs finish on demand."""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
_root_str = str(_REPO_ROOT)
if _root_str not in sys.path:
    sys.path.insert(0, _root_str)

from webstore.client import StorageClient  # noqa: E402
from webstore.session import Session  # noqa: E402
from webstore.session_store import TOKEN_KEY, SessionStore  # noqa: E402
from webstore.workspace import Workspace  # noqa: E402

TOKEN = "good-token"


def file_row(file_id, name="file", ext=".txt", size=100, date="2024-03-01T10:00:00.123456789+03:00"):
    return {"ID": file_id, "ListName": name, "Extension": ext, "Size": size, "Date": date}


class FakeBackend:
    """Routes requests by path; ``responses`` overrides the default reply per path."""

    def __init__(self) -> None:
        self.token = TOKEN
        self.files: List[Dict[str, Any]] = [file_row(1, "alpha"), file_row(2, "beta")]
        self.responses: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []
        self.download_body = b"x" * 4096

    def paths(self, path: str) -> List[httpx.Request]:
        return [req for req in self.requests if req.url.path == path]

    def respond(self, path: str, status: int, payload: Optional[Dict[str, Any]] = None) -> None:
        self.responses[path] = lambda _req: httpx.Response(status, json=payload if payload is not None else {})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/api/auth/") and request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, json={"code": 401, "message": "token is expired"})
        if path in self.responses:
            return self.responses[path](request)
        if path == "/api/pub/login":
            body = json.loads(request.content)
            if body.get("password") != "secret":
                return httpx.Response(401, json={"code": 401, "message": "incorrect Username or Password"})
            return httpx.Response(200, json={"code": 200, "token": self.token})
        if path == "/api/pub/signup":
            return httpx.Response(200, json={"message": "Success registration."})
        if path == "/api/auth/files":
            return httpx.Response(200, json={"files": self.files})
        if path == "/api/auth/upload":
            return httpx.Response(200, json={"message": "Loaded files: a.txt, b.txt"})
        if path == "/api/auth/download":
            return httpx.Response(200, content=self.download_body)
        if path in ("/api/auth/rename", "/api/auth/delete"):
            return httpx.Response(200, json={})
        return httpx.Response(404, json={"message": "not found"})


class Job:
    def __init__(self, fn, on_result, on_error, on_finished, on_progress) -> None:
        self.fn = fn
        self.on_result = on_result
        self.on_error = on_error
        self.on_finished = on_finished
        self.on_progress = on_progress

    def _report(self, done: int, total: int) -> None:
        if self.on_progress:
            self.on_progress(done, total)

    def complete(self) -> None:
        try:
            value = self.fn(self._report)
        except Exception as exc:
            if self.on_error:
                self.on_error(exc)
        else:
            if self.on_result:
                self.on_result(value)
        finally:
            if self.on_finished:
                self.on_finished()


class ManualRunner:
    """Queues work; tests decide when (and in which order) each job completes."""

    def __init__(self) -> None:
        self.jobs: List[Job] = []

    def run(self, fn, on_result=None, on_error=None, on_finished=None, on_progress=None) -> Job:
        job = Job(fn, on_result, on_error, on_finished, on_progress)
        self.jobs.append(job)
        return job

    def complete(self, job: Job) -> None:
        self.jobs.remove(job)
        job.complete()

    def complete_next(self) -> Job:
        job = self.jobs.pop(0)
        job.complete()
        return job

    def drain(self) -> None:
        while self.jobs:
            self.complete_next()


class ManualScheduler:
    def __init__(self) -> None:
        self.pending: List[Tuple[float, Callable[[], None]]] = []

    def call_later(self, seconds: float, fn: Callable[[], None]) -> None:
        self.pending.append((seconds, fn))

    def fire_all(self) -> None:
        pending, self.pending = self.pending, []
        for _delay, fn in pending:
            fn()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client(backend: FakeBackend):
    client = StorageClient(base_url="http://storage.test", transport=httpx.MockTransport(backend))
    yield client
    client.close()


@pytest.fixture
def store(tmp_path: Path) -> SessionStore:
    store = SessionStore(str(tmp_path / "session.json"))
    store.set(TOKEN_KEY, TOKEN)
    return store


@pytest.fixture
def runner() -> ManualRunner:
    return ManualRunner()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def saved() -> List[Tuple[str, bytes]]:
    return []


@pytest.fixture
def workspace(client, store, runner, scheduler, saved) -> Workspace:
    ws = Workspace(
        client,
        Session(store),
        runner,
        scheduler,
        save_file=lambda name, payload: saved.append((name, payload)),
    )
    ws.navigations = []
    ws.on_navigate_entry = lambda: ws.navigations.append("entry")
    return ws
