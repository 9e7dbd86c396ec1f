import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .config import DEFAULT_SESSION_PATH
from .utils import get_logger

TOKEN_KEY = "token"


def load_session(path: str) -> Dict[str, Any]:
    session_path = Path(path)
    data = json.loads(session_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Session file must be a JSON object")
    return data


def save_session(path: str, data: Dict[str, Any]) -> None:
    session_path = Path(path)
    session_path.parent.mkdir(parents=True, exist_ok=True)
    session_path.write_text(json.dumps(data, indent=2, ensure_ascii=True) + "\n", encoding="utf-8")
    os.chmod(session_path, 0o600)


class SessionStore:
    """Key-value file that survives restarts; the workspace only uses ``token``."""

    def __init__(self, path: str = DEFAULT_SESSION_PATH) -> None:
        self.path = path

    def _read(self) -> Dict[str, Any]:
        if not Path(self.path).exists():
            return {}
        try:
            return load_session(self.path)
        except (OSError, ValueError) as exc:
            get_logger("webstore").warning("Ignoring unreadable session file %s: %s", self.path, exc)
            return {}

    def get(self, key: str) -> Optional[Any]:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        save_session(self.path, data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key not in data:
            return
        del data[key]
        save_session(self.path, data)
