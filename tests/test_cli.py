from __future__ import annotations

import json

import httpx
import pytest

from webstore import cli
from webstore.client import StorageClient
from webstore.session_store import TOKEN_KEY, SessionStore

from conftest import TOKEN


@pytest.fixture
def run_cli(backend, monkeypatch, tmp_path):
    monkeypatch.setenv("WEBSTORE_HTTP_LOG", "")

    def factory(base_url, timeout=30.0, http_log_path=None):
        return StorageClient(base_url="http://storage.test", transport=httpx.MockTransport(backend))

    monkeypatch.setattr(cli, "StorageClient", factory)
    session = str(tmp_path / "session.json")

    def run(*argv: str) -> int:
        return cli.main(["--session", session, *argv])

    run.store = SessionStore(session)
    return run


def test_login_saves_token(run_cli, capsys) -> None:
    assert run_cli("login", "--username", "ann", "--password", "secret") == 0
    assert SessionStore(run_cli.store.path).get(TOKEN_KEY) == TOKEN
    assert "session saved" in capsys.readouterr().out


def test_bad_login_reports_server_message(run_cli, capsys) -> None:
    assert run_cli("login", "--username", "ann", "--password", "nope") == 1
    assert "incorrect Username or Password" in capsys.readouterr().err


def test_ls_json_in_server_order(run_cli, backend, capsys) -> None:
    run_cli.store.set(TOKEN_KEY, TOKEN)
    assert run_cli("ls", "--col", "size", "--desc", "--json") == 0

    rows = json.loads(capsys.readouterr().out)
    assert [row["name"] for row in rows] == ["alpha", "beta"]
    assert backend.requests[-1].url.params["col"] == "Size"
    assert backend.requests[-1].url.params["ord"] == "desc"


def test_expired_token_is_removed(run_cli, capsys) -> None:
    run_cli.store.set(TOKEN_KEY, "stale")
    assert run_cli("ls") == 1
    assert SessionStore(run_cli.store.path).get(TOKEN_KEY) is None
    assert "log in again" in capsys.readouterr().err


def test_get_saves_into_output_dir(run_cli, backend, tmp_path) -> None:
    run_cli.store.set(TOKEN_KEY, TOKEN)
    out = tmp_path / "downloads"
    assert run_cli("get", "1", "--out", str(out)) == 0
    assert (out / "alpha.txt").read_bytes() == backend.download_body
