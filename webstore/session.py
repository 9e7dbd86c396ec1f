"""Process-wide credential and the gate every authenticated request goes through.

The gate does not block: it hands the request to a *runner*, an object with a
``run(fn, on_result=None, on_error=None, on_finished=None, on_progress=None)``
method that calls ``fn(report)`` off the UI thread and delivers every callback
back on the UI thread (``report(done, total)`` ends up in ``on_progress``).
``on_finished`` always runs last, after ``on_result`` or ``on_error``.
"""
from typing import Any, Callable, Optional

from .client import AuthorizedClient, StorageClient
from .errors import AuthorizationError
from .session_store import TOKEN_KEY, SessionStore
from .utils import get_logger

Operation = Callable[[AuthorizedClient, Callable[[int, int], None]], Any]


class Session:
    def __init__(self, store: Optional[SessionStore] = None) -> None:
        self._store = store
        token = store.get(TOKEN_KEY) if store is not None else None
        self.token: Optional[str] = str(token) if token else None
        # Bumped on every sign-in and sign-out so late completions can be recognised.
        self.epoch = 0

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def begin(self, token: str) -> None:
        self.token = token
        self.epoch += 1
        if self._store is not None:
            self._store.set(TOKEN_KEY, token)

    def clear(self) -> None:
        self.token = None
        self.epoch += 1
        if self._store is not None:
            self._store.remove(TOKEN_KEY)


class SessionGate:
    def __init__(
        self,
        client: StorageClient,
        session: Session,
        runner: Any,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ) -> None:
        self.client = client
        self.session = session
        self.runner = runner
        self._on_unauthorized = on_unauthorized or (lambda: None)
        self.logger = get_logger("webstore.session")

    def expire(self) -> None:
        self.logger.info("Session rejected by the server, signing out")
        self.session.clear()
        self._on_unauthorized()

    def call(
        self,
        operation: Operation,
        on_result: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        on_finished: Optional[Callable[[], None]] = None,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> Any:
        token = self.session.token
        epoch = self.session.epoch
        if not token:
            self.logger.debug("Refusing authenticated call without a session")
            self._on_unauthorized()
            if on_error:
                on_error(AuthorizationError("Not signed in", 401))
            if on_finished:
                on_finished()
            return None

        client = self.client.authorized(token)

        def work(report: Callable[[int, int], None]) -> Any:
            return operation(client, report)

        def current() -> bool:
            return self.session.epoch == epoch

        def result(value: Any) -> None:
            if not current():
                self.logger.debug("Dropping result for a closed session")
                return
            if on_result:
                on_result(value)

        def error(exc: Exception) -> None:
            if not current():
                self.logger.debug("Dropping error for a closed session: %s", exc)
                return
            if isinstance(exc, AuthorizationError):
                self.expire()
            else:
                self.logger.debug("Request failed: %s", exc)
            if on_error:
                on_error(exc)

        def progress(done: int, total: int) -> None:
            if on_progress and current():
                on_progress(done, total)

        def finished() -> None:
            if on_finished:
                on_finished()

        return self.runner.run(
            work,
            on_result=result,
            on_error=error,
            on_finished=finished,
            on_progress=progress,
        )
