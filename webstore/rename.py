from dataclasses import replace
from typing import Callable, List, Optional

from . import api
from .errors import AuthorizationError, user_message
from .listing import Listing, StatusMessage
from .models import EditSession, FileEntry, FileId
from .session import SessionGate
from .utils import get_logger


class RenameSession:
    """Inline rename of a single row: Idle -> Editing(id) -> Idle."""

    def __init__(
        self,
        gate: SessionGate,
        listing: Listing,
        status: StatusMessage,
        on_changed: Optional[Callable[[], None]] = None,
    ) -> None:
        self._gate = gate
        self._listing = listing
        self._status = status
        self._changed = on_changed or (lambda: None)
        self.logger = get_logger("webstore.rename")
        self.state: Optional[EditSession] = None
        self.submitting = False

    @property
    def editing(self) -> bool:
        return self.state is not None

    def is_editing(self, file_id: FileId) -> bool:
        return self.state is not None and self.state.field_id == file_id

    def begin(self, entry: FileEntry) -> bool:
        if self.state is not None:
            self.logger.debug("Row %s already in edit mode, ignoring %s", self.state.field_id, entry.id)
            return False
        self.state = EditSession(
            field_id=entry.id,
            original_extension=entry.extension,
            candidate_name=entry.display_name,
        )
        self._changed()
        return True

    def update(self, candidate_name: str) -> None:
        if self.state is None or self.submitting:
            return
        self.state = replace(self.state, candidate_name=candidate_name)
        self._changed()

    def cancel(self) -> bool:
        if self.state is None or self.submitting:
            return False
        self.state = None
        self._changed()
        return True

    def reset(self) -> None:
        self.state = None
        self.submitting = False
        self._changed()

    def reconcile(self, files: List[FileEntry]) -> None:
        """Leave edit mode when a refresh no longer lists the row being edited."""
        if self.state is None or self.submitting:
            return
        if any(item.id == self.state.field_id for item in files):
            return
        self.logger.debug("Row %s is gone, leaving edit mode", self.state.field_id)
        self.reset()

    def submit(self, candidate_name: Optional[str] = None) -> bool:
        if self.state is None or self.submitting:
            return False
        if candidate_name is not None:
            self.update(candidate_name)
        edit = self.state
        self.submitting = True
        self._changed()
        self.logger.info("Renaming id=%s to %s%s", edit.field_id, edit.candidate_name, edit.original_extension)
        self._gate.call(
            lambda client, _report: api.rename_file(
                client, edit.field_id, edit.candidate_name, edit.original_extension
            ),
            on_error=self._failed,
            on_finished=lambda: self._settled(edit),
        )
        return True

    def _failed(self, exc: Exception) -> None:
        if isinstance(exc, AuthorizationError):
            return
        self.logger.warning("Rename failed: %s", exc)
        self._status.post(user_message(exc, "Rename failed."))

    def _settled(self, edit: EditSession) -> None:
        # reset() may have dropped this edit while the request was in flight.
        if self.state is edit:
            self.state = None
            self.submitting = False
            self._changed()
        self._listing.refresh()
