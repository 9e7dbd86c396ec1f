from typing import Callable, Dict, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QAbstractItemView,
    QFileDialog,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from ...models import FileEntry, SortColumn, SortDirection
from ...utils import capitalize_message, format_bytes, format_timestamp
from ...workspace import Workspace

_COLUMNS = [
    ("Name", SortColumn.NAME),
    ("Ext", SortColumn.EXTENSION),
    ("Date", SortColumn.DATE),
    ("Size", SortColumn.SIZE),
    ("Actions", None),
]


class FilesTab(QWidget):
    def __init__(
        self,
        workspace: Workspace,
        status_cb: Optional[Callable[[str], None]] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._workspace = workspace
        self._status = status_cb or (lambda _msg: None)
        self._download_btns: Dict[object, QPushButton] = {}
        self._rows_key = None

        root = QVBoxLayout(self)
        root.setContentsMargins(12, 12, 12, 12)
        root.setSpacing(10)

        header = QHBoxLayout()
        self.upload_btn = QPushButton("Upload")
        self.upload_btn.setCursor(Qt.PointingHandCursor)
        self.upload_btn.clicked.connect(self._upload_dialog)
        header.addWidget(self.upload_btn, alignment=Qt.AlignLeft)

        self.progress_label = QLabel("")
        self.progress_label.setStyleSheet("color: #666666;")
        header.addWidget(self.progress_label)
        header.addStretch(1)

        self.logout_btn = QPushButton("Logout")
        self.logout_btn.setCursor(Qt.PointingHandCursor)
        self.logout_btn.clicked.connect(self._workspace.logout)
        header.addWidget(self.logout_btn, alignment=Qt.AlignRight)
        root.addLayout(header)

        self.message_label = QLabel("")
        self.message_label.setWordWrap(True)
        root.addWidget(self.message_label)

        self.table = QTableWidget(0, len(_COLUMNS))
        self.table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.table.setSelectionMode(QAbstractItemView.NoSelection)
        self.table.verticalHeader().setVisible(False)
        # Order comes from the server; never let Qt sort locally.
        self.table.setSortingEnabled(False)
        head = self.table.horizontalHeader()
        head.setSectionResizeMode(0, QHeaderView.Stretch)
        head.setSectionsClickable(True)
        head.sectionClicked.connect(self._on_header_clicked)
        root.addWidget(self.table)

        self.render()

    # ---------- rendering ----------
    def render(self) -> None:
        ws = self._workspace
        uploading = ws.transfers.uploading
        self.upload_btn.setEnabled(not uploading)
        self.upload_btn.setText("Uploading..." if uploading else "Upload")
        percent = ws.transfers.upload_percent
        self.progress_label.setText(f"Uploading: {percent}%" if percent > 0 else "")
        self.message_label.setText(capitalize_message(ws.status.text))
        self._render_header()

        editing = ws.rename.state.field_id if ws.rename.state else None
        key = (id(ws.listing.files), editing, ws.rename.submitting, ws.transfers.download_target)
        if key != self._rows_key:
            self._rows_key = key
            self._render_rows()
        target = ws.transfers.download_target
        if target in self._download_btns:
            self._download_btns[target].setText(f"{ws.transfers.download_percent}%")

    def _render_header(self) -> None:
        sort = self._workspace.listing.sort
        labels = []
        for title, column in _COLUMNS:
            if column is not None and column == sort.column:
                title += " ▲" if sort.direction is SortDirection.ASCENDING else " ▼"
            labels.append(title)
        self.table.setHorizontalHeaderLabels(labels)

    def _render_rows(self) -> None:
        ws = self._workspace
        files = ws.listing.files
        self._download_btns = {}
        self.table.setRowCount(len(files))
        for row, entry in enumerate(files):
            if ws.rename.is_editing(entry.id):
                self.table.setCellWidget(row, 0, self._rename_editor(entry))
            else:
                self.table.removeCellWidget(row, 0)
                self.table.setItem(row, 0, QTableWidgetItem(entry.display_name))
            self.table.setItem(row, 1, QTableWidgetItem(entry.extension))
            self.table.setItem(row, 2, QTableWidgetItem(format_timestamp(entry.modified_at)))
            size_item = QTableWidgetItem(format_bytes(entry.size_bytes))
            size_item.setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
            self.table.setItem(row, 3, size_item)
            self.table.setCellWidget(row, 4, self._actions(entry))
        self.table.resizeColumnsToContents()

    def _rename_editor(self, entry: FileEntry) -> QWidget:
        ws = self._workspace
        box = QWidget()
        layout = QHBoxLayout(box)
        layout.setContentsMargins(0, 0, 0, 0)
        edit = QLineEdit(ws.rename.state.candidate_name)
        edit.setEnabled(not ws.rename.submitting)
        edit.textEdited.connect(ws.update_rename)
        edit.returnPressed.connect(lambda: ws.submit_rename(edit.text()))
        escape = QShortcut(QKeySequence(Qt.Key_Escape), edit)
        escape.setContext(Qt.WidgetShortcut)
        escape.activated.connect(ws.cancel_rename)
        save_btn = QPushButton("Save")
        save_btn.setEnabled(not ws.rename.submitting)
        save_btn.clicked.connect(lambda: ws.submit_rename(edit.text()))
        cancel_btn = QPushButton("Cancel")
        cancel_btn.setEnabled(not ws.rename.submitting)
        cancel_btn.clicked.connect(ws.cancel_rename)
        layout.addWidget(edit, 1)
        layout.addWidget(save_btn)
        layout.addWidget(cancel_btn)
        edit.setFocus()
        return box

    def _actions(self, entry: FileEntry) -> QWidget:
        ws = self._workspace
        box = QWidget()
        layout = QHBoxLayout(box)
        layout.setContentsMargins(0, 0, 0, 0)

        rename_btn = QPushButton("Rename")
        rename_btn.setEnabled(not ws.rename.editing)
        rename_btn.clicked.connect(lambda: ws.begin_rename(entry))

        download_btn = QPushButton("Download")
        download_btn.setEnabled(not ws.transfers.downloading)
        download_btn.clicked.connect(lambda: ws.download(entry.id, entry.filename))
        self._download_btns[entry.id] = download_btn

        delete_btn = QPushButton("Delete")
        delete_btn.clicked.connect(lambda: self._delete_item(entry))

        for btn in (rename_btn, download_btn, delete_btn):
            btn.setCursor(Qt.PointingHandCursor)
            layout.addWidget(btn)
        return box

    # ---------- actions ----------
    def _on_header_clicked(self, index: int) -> None:
        column = _COLUMNS[index][1]
        if column is None:
            return
        self._workspace.set_sort(column)

    def _upload_dialog(self) -> None:
        paths, _ = QFileDialog.getOpenFileNames(self, "Select files to upload")
        if not paths:
            return
        if self._workspace.upload(paths):
            self._status(f"Uploading {len(paths)} file(s)...")

    def _delete_item(self, entry: FileEntry) -> None:
        ok = QMessageBox.question(self, "Delete", f"Delete {entry.filename}?")
        if ok != QMessageBox.StandardButton.Yes:
            return
        self._workspace.delete(entry.id)
