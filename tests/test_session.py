from __future__ import annotations

import os
import stat

from webstore import api
from webstore.errors import AuthorizationError, ValidationError
from webstore.session import Session, SessionGate
from webstore.session_store import TOKEN_KEY, SessionStore

from conftest import TOKEN


def _gate(client, session, runner):
    events = []
    gate = SessionGate(client, session, runner, on_unauthorized=lambda: events.append("entry"))
    return gate, events


def test_store_persists_token_with_private_mode(tmp_path) -> None:
    path = tmp_path / "nested" / "session.json"
    store = SessionStore(str(path))
    store.set(TOKEN_KEY, "abc")
    assert SessionStore(str(path)).get(TOKEN_KEY) == "abc"
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
    store.remove(TOKEN_KEY)
    assert store.get(TOKEN_KEY) is None


def test_unreadable_store_reads_as_empty(tmp_path) -> None:
    path = tmp_path / "session.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert SessionStore(str(path)).get(TOKEN_KEY) is None


def test_session_reads_token_at_startup(store) -> None:
    session = Session(store)
    assert session.authenticated
    assert session.token == TOKEN


def test_gate_attaches_current_token(client, backend, store, runner) -> None:
    gate, events = _gate(client, Session(store), runner)
    results = []
    gate.call(lambda c, _report: api.list_files(c), on_result=results.append)
    runner.drain()
    assert backend.requests[-1].headers["Authorization"] == f"Bearer {TOKEN}"
    assert len(results[0]) == 2
    assert events == []


def test_401_clears_session_and_navigates(client, backend, store, runner) -> None:
    session = Session(store)
    gate, events = _gate(client, session, runner)
    backend.token = "rotated"
    errors, finished = [], []

    gate.call(lambda c, _report: api.list_files(c), on_error=errors.append, on_finished=lambda: finished.append(True))
    runner.drain()

    assert session.token is None
    assert store.get(TOKEN_KEY) is None
    assert events == ["entry"]
    assert isinstance(errors[0], AuthorizationError)
    assert finished == [True]


def test_other_failures_leave_session_alone(client, backend, store, runner) -> None:
    session = Session(store)
    gate, events = _gate(client, session, runner)
    backend.respond("/api/auth/rename", 400, {"message": "bad name"})
    errors = []

    gate.call(lambda c, _report: api.rename_file(c, 1, "x", ".txt"), on_error=errors.append)
    runner.drain()

    assert isinstance(errors[0], ValidationError)
    assert session.token == TOKEN
    assert events == []


def test_call_without_token_fails_locally(client, backend, tmp_path, runner) -> None:
    session = Session(SessionStore(str(tmp_path / "empty.json")))
    gate, events = _gate(client, session, runner)
    errors, finished = [], []

    gate.call(lambda c, _report: api.list_files(c), on_error=errors.append, on_finished=lambda: finished.append(True))

    assert runner.jobs == []
    assert backend.requests == []
    assert isinstance(errors[0], AuthorizationError)
    assert finished == [True]
    assert events == ["entry"]


def test_completions_from_a_closed_session_are_ignored(client, backend, store, runner) -> None:
    session = Session(store)
    gate, events = _gate(client, session, runner)
    backend.token = "rotated"
    results, errors, finished = [], [], []

    gate.call(lambda c, _report: api.list_files(c), on_error=errors.append)
    gate.call(
        lambda c, _report: api.list_files(c),
        on_result=results.append,
        on_error=errors.append,
        on_finished=lambda: finished.append(True),
    )
    runner.drain()

    # The first 401 ends the session; the second reply belongs to it and is dropped.
    assert events == ["entry"]
    assert len(errors) == 1
    assert results == []
    assert finished == [True]
