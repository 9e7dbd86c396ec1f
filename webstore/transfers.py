import os
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from . import api
from .errors import ApiError, AuthorizationError, user_message
from .listing import Listing, StatusMessage
from .models import FileId, TransferKind, TransferProgress
from .session import SessionGate
from .utils import get_logger

UPLOAD_FAILED = "Upload failed."
DOWNLOAD_FAILED = "An error occurred while preparing the file."

SaveAction = Callable[[str, bytes], object]


def _free_path(directory: Path, filename: str) -> Path:
    target = directory / filename
    stem, suffix = os.path.splitext(filename)
    num = 1
    while target.exists():
        target = directory / f"{stem}({num}){suffix}"
        num += 1
    return target


def save_to_directory(directory: Union[str, Path]) -> SaveAction:
    """Save action writing downloads into ``directory`` without clobbering existing files."""
    directory = Path(directory)

    def save(filename: str, payload: bytes) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        target = _free_path(directory, Path(filename).name or "download")
        tmp = target.with_name(f"{target.name}.part")
        try:
            with open(tmp, "wb") as handle:
                handle.write(payload)
            os.replace(tmp, target)
        except OSError:
            if tmp.exists():
                tmp.unlink()
            raise
        return target

    return save


class TransferTracker:
    """Upload and download progress, one of each at most."""

    def __init__(
        self,
        gate: SessionGate,
        listing: Listing,
        status: StatusMessage,
        save_file: SaveAction,
        on_changed: Optional[Callable[[], None]] = None,
    ) -> None:
        self._gate = gate
        self._listing = listing
        self._status = status
        self._save_file = save_file
        self._changed = on_changed or (lambda: None)
        self.logger = get_logger("webstore.transfers")
        self.upload_state: Optional[TransferProgress] = None
        self.download_state: Optional[TransferProgress] = None
        # Identifies the job whose completion may settle each state.
        self._upload_ticket: Optional[object] = None
        self._download_ticket: Optional[object] = None

    def reset(self) -> None:
        """Forget in-flight transfers; their late completions are ignored."""
        self.upload_state = None
        self.download_state = None
        self._upload_ticket = None
        self._download_ticket = None
        self._changed()

    @property
    def uploading(self) -> bool:
        return self.upload_state is not None

    @property
    def upload_percent(self) -> int:
        return self.upload_state.percent if self.upload_state else 0

    @property
    def downloading(self) -> bool:
        return self.download_state is not None

    @property
    def download_target(self) -> Optional[FileId]:
        return self.download_state.target_id if self.download_state else None

    @property
    def download_percent(self) -> int:
        return self.download_state.percent if self.download_state else 0

    # ---------- upload ----------
    def upload(self, paths: Iterable[Union[str, Path]]) -> bool:
        if self.upload_state is not None:
            self.logger.debug("Upload already in flight, ignoring")
            return False
        paths = list(paths)
        if not paths:
            self._status.post("No files selected.")
            return False
        self.upload_state = TransferProgress(TransferKind.UPLOAD)
        ticket = self._upload_ticket = object()
        self._changed()
        self.logger.info("Uploading %d file(s)", len(paths))
        self._gate.call(
            lambda client, report: api.upload_files(client, paths, report),
            on_result=self._upload_done,
            on_error=self._upload_failed,
            on_finished=lambda: self._upload_settled(ticket),
            on_progress=self._upload_progress,
        )
        return True

    def _upload_progress(self, done: int, total: int) -> None:
        if self.upload_state is None:
            return
        advanced = self.upload_state.advanced(done, total)
        if advanced != self.upload_state:
            self.upload_state = advanced
            self._changed()

    def _upload_done(self, message: str) -> None:
        self._status.post(message or "Upload finished.")

    def _upload_failed(self, exc: Exception) -> None:
        if isinstance(exc, AuthorizationError):
            return
        if not isinstance(exc, ApiError):
            self.logger.error("Upload failed: %s", exc)
        self._status.post(user_message(exc, UPLOAD_FAILED))

    def _upload_settled(self, ticket: object) -> None:
        if ticket is not self._upload_ticket:
            return
        self.upload_state = None
        self._changed()
        self._listing.refresh()

    # ---------- download ----------
    def download(self, file_id: FileId, filename: str) -> bool:
        if self.download_state is not None:
            self.logger.debug("Download of %s in flight, refusing %s", self.download_state.target_id, file_id)
            return False
        self.download_state = TransferProgress(TransferKind.DOWNLOAD, target_id=file_id)
        ticket = self._download_ticket = object()
        self._changed()
        self.logger.info("Downloading id=%s as %s", file_id, filename)
        self._gate.call(
            lambda client, report: api.download_file(client, file_id, filename, report),
            on_result=lambda payload: self._download_done(filename, payload),
            on_error=self._download_failed,
            on_finished=lambda: self._download_settled(ticket),
            on_progress=self._download_progress,
        )
        return True

    def _download_progress(self, done: int, total: int) -> None:
        if self.download_state is None:
            return
        advanced = self.download_state.advanced(done, total)
        if advanced != self.download_state:
            self.download_state = advanced
            self._changed()

    def _download_done(self, filename: str, payload: bytes) -> None:
        try:
            saved = self._save_file(filename, payload)
        except OSError as exc:
            self.logger.error("Saving %s failed: %s", filename, exc)
            self._status.post(DOWNLOAD_FAILED)
            return
        self.logger.info("Saved %s (%d bytes) -> %s", filename, len(payload), saved)

    def _download_failed(self, exc: Exception) -> None:
        if isinstance(exc, AuthorizationError):
            return
        self.logger.warning("Download failed: %s", exc)
        self._status.post(DOWNLOAD_FAILED)

    def _download_settled(self, ticket: object) -> None:
        if ticket is not self._download_ticket:
            return
        self.download_state = None
        self._changed()
