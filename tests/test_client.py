from __future__ import annotations

import httpx
import pytest

from webstore import api
from webstore.client import StorageClient
from webstore.errors import AuthorizationError, ServerError, TransportError, ValidationError
from webstore.models import SortColumn, SortDirection, SortState

from conftest import TOKEN, file_row


def test_authorized_requests_carry_bearer_header(client, backend) -> None:
    api.list_files(client.authorized(TOKEN))
    assert backend.requests[-1].headers["Authorization"] == f"Bearer {TOKEN}"


def test_public_requests_have_no_authorization(client, backend) -> None:
    assert api.login(client, "ann", "secret") == TOKEN
    assert "Authorization" not in backend.requests[-1].headers


def test_list_sends_sort_params_and_keeps_server_order(client, backend) -> None:
    backend.files = [file_row(3, size=5000), file_row(1, size=200)]
    items = api.list_files(client.authorized(TOKEN), SortState(SortColumn.SIZE, SortDirection.DESCENDING))
    params = backend.requests[-1].url.params
    assert params["col"] == "Size"
    assert params["ord"] == "desc"
    assert [item.id for item in items] == [3, 1]


def test_401_raises_authorization_error(client) -> None:
    with pytest.raises(AuthorizationError) as info:
        api.list_files(client.authorized("stale"))
    assert info.value.status_code == 401
    assert info.value.server_message == "token is expired"


def test_4xx_raises_validation_error_with_server_message(client, backend) -> None:
    backend.respond("/api/auth/rename", 400, {"message": 'File: "x.txt" was exist. Enter another name.'})
    with pytest.raises(ValidationError) as info:
        api.rename_file(client.authorized(TOKEN), 1, "x", ".txt")
    assert info.value.message.startswith('File: "x.txt"')


def test_5xx_raises_server_error(client, backend) -> None:
    backend.respond("/api/auth/delete", 500)
    with pytest.raises(ServerError):
        api.delete_file(client.authorized(TOKEN), 9)


def test_network_failure_becomes_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = StorageClient(base_url="http://storage.test", transport=httpx.MockTransport(handler))
    with pytest.raises(TransportError):
        api.list_files(client.authorized(TOKEN))
    client.close()


def test_malformed_listing_becomes_transport_error(client, backend) -> None:
    backend.responses["/api/auth/files"] = lambda _req: httpx.Response(200, text="<html>oops</html>")
    with pytest.raises(TransportError):
        api.list_files(client.authorized(TOKEN))


def test_upload_reports_byte_progress(client, backend, tmp_path) -> None:
    first = tmp_path / "a.txt"
    second = tmp_path / "b.txt"
    first.write_bytes(b"a" * 1000)
    second.write_bytes(b"b" * 2000)
    reports = []

    message = api.upload_files(client.authorized(TOKEN), [first, second], lambda done, total: reports.append((done, total)))

    assert message == "Loaded files: a.txt, b.txt"
    assert reports[0][0] == 0
    done, total = reports[-1]
    assert total > 3000
    assert done == total
    body = backend.requests[-1].content
    assert b'name="files"; filename="a.txt"' in body
    assert b'name="files"; filename="b.txt"' in body


def test_download_reports_progress_and_returns_payload(client, backend) -> None:
    reports = []
    payload = api.download_file(client.authorized(TOKEN), 5, "notes.txt", lambda d, t: reports.append((d, t)))
    assert payload == backend.download_body
    assert reports[-1] == (len(payload), len(payload))
    params = backend.requests[-1].url.params
    assert params["id"] == "5"
    assert params["file"] == "notes.txt"


def test_truncated_download_is_rejected(client, backend) -> None:
    backend.responses["/api/auth/download"] = lambda _req: httpx.Response(
        200, headers={"Content-Length": "100"}, content=b"abc"
    )
    with pytest.raises(TransportError):
        api.download_file(client.authorized(TOKEN), 5, "notes.txt")


def test_http_log_redacts_credentials(backend, tmp_path) -> None:
    log_path = tmp_path / "http.log"
    client = StorageClient(
        base_url="http://storage.test",
        transport=httpx.MockTransport(backend),
        http_log_path=str(log_path),
    )
    api.login(client, "ann", "secret")
    api.list_files(client.authorized(TOKEN))
    client.close()

    text = log_path.read_text(encoding="utf-8")
    assert "GET http://storage.test/api/auth/files" in text
    assert TOKEN not in text
    assert "secret" not in text
