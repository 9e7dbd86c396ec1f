from contextlib import ExitStack
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
import mimetypes

import httpx

from endpoints import FILES, PUBLIC
from .errors import TransportError
from .models import FileEntry, FileId, SortState

ProgressCallback = Callable[[int, int], None]


def _json_or_raise(resp: httpx.Response) -> Dict[str, Any]:
    if not resp.content:
        return {}
    try:
        payload = resp.json()
    except ValueError as exc:
        raise TransportError(f"Non-JSON response: {resp.text[:200]}", resp.status_code) from exc
    if not isinstance(payload, dict):
        raise TransportError(f"Unexpected response: {payload!r}", resp.status_code)
    return payload


def _message(payload: Dict[str, Any]) -> str:
    message = payload.get("message")
    return message if isinstance(message, str) else ""


def login(client, username: str, password: str) -> str:
    payload = {"username": username, "password": password}
    resp = client.request(PUBLIC["login"]["method"], PUBLIC["login"]["path"], json=payload)
    token = _json_or_raise(resp).get("token")
    if not token:
        raise TransportError("Login response carried no token", resp.status_code)
    return str(token)


def signup(client, username: str, password: str) -> str:
    payload = {"username": username, "password": password}
    resp = client.request(PUBLIC["signup"]["method"], PUBLIC["signup"]["path"], json=payload)
    return _message(_json_or_raise(resp))


def list_files(client, sort: Optional[SortState] = None) -> List[FileEntry]:
    params = (sort or SortState()).params()
    resp = client.request(FILES["list"]["method"], FILES["list"]["path"], params=params)
    payload = _json_or_raise(resp)
    rows = payload.get("files") or []
    if not isinstance(rows, list):
        raise TransportError(f"Unexpected files payload: {rows!r}", resp.status_code)
    try:
        return [FileEntry.from_row(row) for row in rows]
    except (AttributeError, TypeError, ValueError) as exc:
        raise TransportError(f"Malformed file row: {exc}", resp.status_code) from exc


def upload_files(
    client,
    paths: Sequence[Union[str, Path]],
    on_progress: Optional[ProgressCallback] = None,
) -> str:
    with ExitStack() as stack:
        files = []
        for path in paths:
            path = Path(path)
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            handle = stack.enter_context(open(path, "rb"))
            files.append(("files", (path.name, handle, content_type)))
        resp = client.request(
            FILES["upload"]["method"],
            FILES["upload"]["path"],
            files=files,
            on_upload_progress=on_progress,
        )
    return _message(_json_or_raise(resp))


def rename_file(client, file_id: FileId, name: str, extension: str) -> str:
    payload = {"id": file_id, "name": name, "extension": extension}
    resp = client.request(FILES["rename"]["method"], FILES["rename"]["path"], json=payload)
    return _message(_json_or_raise(resp))


def download_file(
    client,
    file_id: FileId,
    filename: str,
    on_progress: Optional[ProgressCallback] = None,
) -> bytes:
    params = {"id": file_id, "file": filename}
    return client.download(
        FILES["download"]["method"],
        FILES["download"]["path"],
        params=params,
        on_progress=on_progress,
    )


def delete_file(client, file_id: FileId) -> str:
    payload = {"id": file_id}
    resp = client.request(FILES["delete"]["method"], FILES["delete"]["path"], json=payload)
    return _message(_json_or_raise(resp))
