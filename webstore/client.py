from typing import Any, Callable, Dict, Iterator, Optional, Tuple
import json

try:
    import httpx
except ModuleNotFoundError as exc:  # pragma: no cover - user environment dependency
    raise ModuleNotFoundError(
        "Missing dependency 'httpx'. Install with: pip install httpx"
    ) from exc

from endpoints import BASE_URL
from .errors import AuthorizationError, ServerError, TransportError, ValidationError
from .utils import append_log_line, get_logger, redact_payload, redacted_headers, truncate_text

ProgressCallback = Callable[[int, int], None]


class ProgressStream(httpx.SyncByteStream):
    """Request body wrapper reporting ``(bytes_sent, bytes_total)`` per chunk."""

    def __init__(self, stream: Any, total: int, on_progress: ProgressCallback) -> None:
        self._stream = stream
        self._total = total
        self._on_progress = on_progress

    def __iter__(self) -> Iterator[bytes]:
        sent = 0
        self._on_progress(sent, self._total)
        for chunk in self._stream:
            sent += len(chunk)
            self._on_progress(sent, self._total)
            yield chunk

    def close(self) -> None:
        close = getattr(self._stream, "close", None)
        if close is not None:
            close()


def _server_message(resp: httpx.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


def raise_for_status(resp: httpx.Response) -> None:
    if resp.is_success:
        return
    code = resp.status_code
    server_message = _server_message(resp)
    text = server_message or f"HTTP {code}"
    if code == 401:
        raise AuthorizationError(text, code, server_message)
    if 400 <= code < 500:
        raise ValidationError(text, code, server_message)
    if code >= 500:
        raise ServerError(text, code, server_message)
    raise TransportError(f"Unexpected response: HTTP {code}", code)


class StorageClient:
    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        http_log_path: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.logger = get_logger('webstore')
        self._client = httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=transport)
        self.http_log_path = http_log_path

    def _default_headers(self, token: Optional[str]) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(
        self,
        method: str,
        path: str,
        token: Optional[str],
        on_upload: Optional[ProgressCallback],
        on_download: Optional[ProgressCallback],
        kwargs: Dict[str, Any],
    ) -> Tuple[httpx.Response, bytes]:
        url = path if path.startswith('http') else f"{self.base_url}{path}"
        headers = self._default_headers(token)
        headers.update(kwargs.pop('headers', None) or {})
        request = self._client.build_request(method, url, headers=headers, **kwargs)
        if on_upload is not None:
            total = int(request.headers.get("Content-Length") or 0)
            request.stream = ProgressStream(request.stream, total, on_upload)

        redacted = redacted_headers(dict(request.headers))
        self.logger.debug('HTTP %s %s headers=%s', method, request.url, redacted)
        if "json" in kwargs:
            append_log_line(
                self.http_log_path,
                f"{method} {request.url} headers={redacted} payload={redact_payload(kwargs['json'])}",
                rotate_daily=True,
            )
        else:
            append_log_line(self.http_log_path, f"{method} {request.url} headers={redacted}", rotate_daily=True)

        try:
            resp = self._client.send(request, stream=True)
            try:
                if on_download is not None and resp.is_success:
                    body = self._read_with_progress(resp, on_download)
                else:
                    body = resp.read()
            finally:
                resp.close()
        except httpx.HTTPError as exc:
            self.logger.debug('HTTP %s %s failed: %s', method, request.url, exc)
            append_log_line(self.http_log_path, f"{method} {request.url} error={exc!r}", rotate_daily=True)
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if on_download is not None and resp.is_success:
            response_body: Any = f"<binary {len(body)} bytes>"
        else:
            try:
                response_body = redact_payload(resp.json())
            except ValueError:
                response_body = truncate_text(resp.text or "")
        append_log_line(
            self.http_log_path,
            f"{method} {request.url} status={resp.status_code} response={json.dumps(response_body, ensure_ascii=True)}",
            rotate_daily=True,
        )
        raise_for_status(resp)
        return resp, body

    def _read_with_progress(self, resp: httpx.Response, on_progress: ProgressCallback) -> bytes:
        total = int(resp.headers.get("Content-Length") or 0)
        # Content-Length counts wire bytes; with an encoding only the raw counter matches it.
        encoded = resp.headers.get("Content-Encoding", "identity").lower() != "identity"
        received = bytearray()
        on_progress(0, total)
        for chunk in resp.iter_bytes():
            received.extend(chunk)
            on_progress(resp.num_bytes_downloaded if encoded else len(received), total)
        if total and not encoded and len(received) < total:
            raise TransportError(
                f"Incomplete download: {len(received)} of {total} bytes",
                resp.status_code,
            )
        return bytes(received)

    def request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        on_upload_progress: Optional[ProgressCallback] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        resp, _body = self._send(method, path, token, on_upload_progress, None, kwargs)
        return resp

    def download(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        **kwargs: Any,
    ) -> bytes:
        _resp, body = self._send(method, path, token, None, on_progress or (lambda _done, _total: None), kwargs)
        return body

    def authorized(self, token: str) -> "AuthorizedClient":
        return AuthorizedClient(self, token)

    def close(self) -> None:
        self._client.close()


class AuthorizedClient:
    """A StorageClient view that sends every request with one bearer token."""

    def __init__(self, client: StorageClient, token: str) -> None:
        self._client = client
        self.token = token

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        return self._client.request(method, path, token=self.token, **kwargs)

    def download(self, method: str, path: str, **kwargs: Any) -> bytes:
        return self._client.download(method, path, token=self.token, **kwargs)
