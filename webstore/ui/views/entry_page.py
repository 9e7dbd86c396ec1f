from typing import Callable, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ... import api
from ...client import StorageClient
from ...errors import ApiError, user_message
from ...session import Session
from ...utils import capitalize_message
from ..threads import TaskRunner


class EntryPage(QWidget):
    """Log-in / sign-up form shown while there is no session."""

    def __init__(
        self,
        client: StorageClient,
        session: Session,
        on_signed_in: Callable[[], None],
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._client = client
        self._session = session
        self._on_signed_in = on_signed_in
        self._runner = TaskRunner()

        root = QVBoxLayout(self)
        root.setContentsMargins(24, 24, 24, 24)
        root.setSpacing(12)
        root.addStretch(1)

        title = QLabel("Web Storage")
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet("font-size: 20px; font-weight: 600;")
        root.addWidget(title)

        self.message = QLabel("")
        self.message.setAlignment(Qt.AlignCenter)
        self.message.setWordWrap(True)
        self.message.setStyleSheet("color: #666666;")
        root.addWidget(self.message)

        form = QFormLayout()
        self.user_edit = QLineEdit()
        self.pass_edit = QLineEdit()
        self.pass_edit.setEchoMode(QLineEdit.Password)
        self.pass_edit.returnPressed.connect(self._login)
        form.addRow("Username:", self.user_edit)
        form.addRow("Password:", self.pass_edit)
        root.addLayout(form)

        buttons = QHBoxLayout()
        buttons.addStretch(1)
        self.signup_btn = QPushButton("Sign Up")
        self.signup_btn.clicked.connect(self._signup)
        self.login_btn = QPushButton("Login")
        self.login_btn.setDefault(True)
        self.login_btn.clicked.connect(self._login)
        buttons.addWidget(self.signup_btn)
        buttons.addWidget(self.login_btn)
        root.addLayout(buttons)
        root.addStretch(1)

    def reset(self, message: str = "") -> None:
        self.user_edit.clear()
        self.pass_edit.clear()
        self.message.setText(message)
        self._set_busy(False)

    def _set_busy(self, busy: bool) -> None:
        self.login_btn.setEnabled(not busy)
        self.signup_btn.setEnabled(not busy)

    def _credentials(self):
        return self.user_edit.text().strip(), self.pass_edit.text()

    def _login(self) -> None:
        username, password = self._credentials()
        if not username or not password:
            self.message.setText("Fields cannot be empty.")
            return
        self._set_busy(True)

        def done(token: str) -> None:
            self._session.begin(token)
            self.reset()
            self._on_signed_in()

        self._runner.run(
            lambda _report: api.login(self._client, username, password),
            on_result=done,
            on_error=lambda exc: self._failed(exc, "Login failed."),
        )

    def _signup(self) -> None:
        username, password = self._credentials()
        self._set_busy(True)

        def done(message: str) -> None:
            self.pass_edit.clear()
            self.message.setText(capitalize_message(message or "Success registration."))
            self._set_busy(False)

        self._runner.run(
            lambda _report: api.signup(self._client, username, password),
            on_result=done,
            on_error=lambda exc: self._failed(exc, "Sign up failed."),
        )

    def _failed(self, exc: Exception, fallback: str) -> None:
        text = user_message(exc, fallback)
        if not isinstance(exc, ApiError):
            text = f"{fallback} {exc}"
        self.pass_edit.clear()
        self.message.setText(capitalize_message(text))
        self._set_busy(False)
