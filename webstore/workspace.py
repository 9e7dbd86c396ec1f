"""The signed-in view: file table, sort header, transfers, inline rename.

Every mutation ends with a listing refresh; the session gate can end the
session from any of them.
"""
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Union

from . import api
from .client import StorageClient
from .errors import AuthorizationError, user_message
from .listing import Listing, StatusMessage
from .models import FileEntry, FileId, SortColumn
from .rename import RenameSession
from .session import Session, SessionGate
from .transfers import SaveAction, TransferTracker
from .utils import get_logger


class Workspace:
    def __init__(
        self,
        client: StorageClient,
        session: Session,
        runner: Any,
        scheduler: Any,
        save_file: SaveAction,
        message_seconds: float = 5.0,
    ) -> None:
        self.client = client
        self.session = session
        self.logger = get_logger("webstore.workspace")
        self.on_changed: Optional[Callable[[], None]] = None
        self.on_navigate_entry: Optional[Callable[[], None]] = None

        self.gate = SessionGate(client, session, runner, on_unauthorized=self._signed_out)
        self.status = StatusMessage(scheduler, message_seconds, on_changed=self._notify)
        self.listing = Listing(self.gate, self.status, on_changed=self._notify)
        self.transfers = TransferTracker(self.gate, self.listing, self.status, save_file, on_changed=self._notify)
        self.rename = RenameSession(self.gate, self.listing, self.status, on_changed=self._notify)
        self.listing.on_applied = self.rename.reconcile

    def _notify(self) -> None:
        if self.on_changed:
            self.on_changed()

    def _signed_out(self) -> None:
        self.rename.reset()
        self.transfers.reset()
        self.listing.reset()
        self.status.clear()
        if self.on_navigate_entry:
            self.on_navigate_entry()

    def start(self) -> Optional[int]:
        return self.listing.refresh()

    def logout(self) -> None:
        self.logger.info("Signing out")
        self.session.clear()
        self._signed_out()

    # ---------- listing ----------
    def set_sort(self, column: SortColumn) -> None:
        self.listing.set_sort(column)

    def refresh(self) -> Optional[int]:
        return self.listing.refresh()

    # ---------- transfers ----------
    def upload(self, paths: Iterable[Union[str, Path]]) -> bool:
        return self.transfers.upload(paths)

    def download(self, file_id: FileId, filename: Optional[str] = None) -> bool:
        if filename is None:
            entry = self.listing.entry(file_id)
            filename = entry.filename if entry else str(file_id)
        return self.transfers.download(file_id, filename)

    # ---------- rename ----------
    def begin_rename(self, entry: FileEntry) -> bool:
        return self.rename.begin(entry)

    def update_rename(self, candidate_name: str) -> None:
        self.rename.update(candidate_name)

    def cancel_rename(self) -> bool:
        return self.rename.cancel()

    def submit_rename(self, candidate_name: Optional[str] = None) -> bool:
        return self.rename.submit(candidate_name)

    # ---------- delete ----------
    def delete(self, file_id: FileId) -> None:
        # Refresh whatever the outcome: the server decides whether the row is gone.
        self.logger.info("Deleting id=%s", file_id)
        self.gate.call(
            lambda client, _report: api.delete_file(client, file_id),
            on_error=self._delete_failed,
            on_finished=self.listing.refresh,
        )

    def _delete_failed(self, exc: Exception) -> None:
        if isinstance(exc, AuthorizationError):
            return
        self.logger.warning("Delete failed: %s", exc)
        self.status.post(user_message(exc, "Delete failed."))
