from typing import Any, Callable, List, Optional

from . import api
from .errors import AuthorizationError, user_message
from .models import FileEntry, FileId, SortColumn, SortState
from .session import SessionGate
from .utils import get_logger


class StatusMessage:
    """Transient message line shown above the file table.

    ``scheduler`` needs a single ``call_later(seconds, fn)`` method.
    """

    def __init__(self, scheduler: Any, delay: float = 5.0, on_changed: Optional[Callable[[], None]] = None) -> None:
        self._scheduler = scheduler
        self.delay = delay
        self._changed = on_changed or (lambda: None)
        self.text = ""
        self._serial = 0

    def post(self, text: str) -> None:
        self.text = text
        self._serial += 1
        self._changed()

    def clear(self) -> None:
        if not self.text:
            return
        self.post("")

    def schedule_clear(self) -> None:
        serial = self._serial
        self._scheduler.call_later(self.delay, lambda: self._expire(serial))

    def _expire(self, serial: int) -> None:
        # A newer message replaced the one this timer was armed for.
        if serial != self._serial:
            return
        self.clear()


class Listing:
    def __init__(
        self,
        gate: SessionGate,
        status: StatusMessage,
        on_changed: Optional[Callable[[], None]] = None,
    ) -> None:
        self._gate = gate
        self._status = status
        self._changed = on_changed or (lambda: None)
        self.on_applied: Optional[Callable[[List[FileEntry]], None]] = None
        self.logger = get_logger("webstore.listing")
        self.files: List[FileEntry] = []
        self.sort = SortState()
        self.loading = False
        self._seq = 0

    @property
    def latest_request(self) -> int:
        return self._seq

    def entry(self, file_id: FileId) -> Optional[FileEntry]:
        return next((item for item in self.files if item.id == file_id), None)

    def set_sort(self, column: SortColumn) -> None:
        self.sort = self.sort.toggled(column)
        self._changed()
        self.refresh()

    def refresh(self) -> Optional[int]:
        if not self._gate.session.authenticated:
            return None
        self._seq += 1
        seq = self._seq
        sort = self.sort
        self.loading = True
        self._changed()
        self.logger.debug("Refresh #%s col=%s ord=%s", seq, sort.column.value, sort.direction.value)
        self._gate.call(
            lambda client, _report: api.list_files(client, sort),
            on_result=lambda files: self._apply(seq, files),
            on_error=lambda exc: self._failed(seq, exc),
        )
        return seq

    def reset(self) -> None:
        self._seq += 1
        self.files = []
        self.sort = SortState()
        self.loading = False
        self._changed()

    def _apply(self, seq: int, files: List[FileEntry]) -> None:
        if seq != self._seq:
            self.logger.debug("Discarding stale listing #%s (latest #%s)", seq, self._seq)
            return
        self.files = list(files)
        self.loading = False
        if self.on_applied:
            self.on_applied(self.files)
        self._changed()
        self._status.schedule_clear()

    def _failed(self, seq: int, exc: Exception) -> None:
        if seq != self._seq:
            return
        self.loading = False
        if isinstance(exc, AuthorizationError):
            self._changed()
            return
        self.logger.warning("Listing failed: %s", exc)
        self._status.post(user_message(exc, "Unable to load the file list."))
