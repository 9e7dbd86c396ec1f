from PySide6.QtCore import Qt
from PySide6.QtWidgets import QMainWindow, QPushButton, QStackedWidget, QTabWidget, QToolButton

from ..client import StorageClient
from ..config import Settings
from ..session import Session
from ..session_store import SessionStore
from ..transfers import save_to_directory
from ..workspace import Workspace
from .state import AppState
from .threads import TaskRunner, TimerScheduler
from .views.entry_page import EntryPage
from .views.files_tab import FilesTab
from .views.log_tab import LogTab


class MainWindow(QMainWindow):
    def __init__(self, settings: Settings) -> None:
        super().__init__()
        self.setWindowTitle("Web Storage")
        self.resize(1000, 700)

        client = StorageClient(
            base_url=settings.base_url,
            timeout=settings.timeout,
            http_log_path=settings.http_log_path,
        )
        session = Session(SessionStore(settings.session_path))
        self.state = AppState(settings=settings, client=client, session=session)

        workspace = Workspace(
            client,
            session,
            runner=TaskRunner(),
            scheduler=TimerScheduler(),
            save_file=save_to_directory(settings.download_dir),
            message_seconds=settings.message_seconds,
        )
        workspace.on_changed = self._on_workspace_changed
        workspace.on_navigate_entry = self._show_entry
        self.state.workspace = workspace

        self.pages = QStackedWidget(self)
        self.setCentralWidget(self.pages)

        self.entry_page = EntryPage(client, session, on_signed_in=self._show_workspace)
        self.tabs = QTabWidget()
        self.files_tab = FilesTab(workspace, status_cb=self._set_status)
        self.log_tab = LogTab(settings.http_log_path)
        self.tabs.addTab(self.files_tab, "Files")
        self.tabs.addTab(self.log_tab, "LOG")
        self.pages.addWidget(self.entry_page)
        self.pages.addWidget(self.tabs)

        self.statusBar().showMessage("Ready")
        self._apply_pointer_cursors()
        if session.authenticated:
            self._show_workspace()
        else:
            self._show_entry()

    def _apply_pointer_cursors(self) -> None:
        for btn in self.findChildren(QPushButton):
            btn.setCursor(Qt.PointingHandCursor)
        for btn in self.findChildren(QToolButton):
            btn.setCursor(Qt.PointingHandCursor)

    def _show_entry(self) -> None:
        self.entry_page.reset()
        self.pages.setCurrentWidget(self.entry_page)
        self._set_status("Signed out")

    def _show_workspace(self) -> None:
        self.pages.setCurrentWidget(self.tabs)
        self._set_status("Loading files...")
        self.state.workspace.start()

    def _on_workspace_changed(self) -> None:
        self.files_tab.render()
        listing = self.state.workspace.listing
        if not listing.loading and self.pages.currentWidget() is self.tabs:
            self._set_status(f"{len(listing.files)} file(s)")

    def _set_status(self, text: str) -> None:
        self.statusBar().showMessage(text)

    def closeEvent(self, event) -> None:
        self.state.client.close()
        super().closeEvent(event)
