import os
from dataclasses import dataclass
from typing import Optional

from endpoints import BASE_URL

DEFAULT_SESSION_PATH = ".webstore/session.json"
DEFAULT_HTTP_LOG = "webstore_http.log"


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_bool(name: str, default: bool = True) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value not in ("0", "false", "FALSE")


def debug_enabled() -> bool:
    return os.getenv("WEBSTORE_DEBUG", "0") in ("1", "true", "TRUE")


@dataclass
class Settings:
    base_url: str = BASE_URL
    session_path: str = DEFAULT_SESSION_PATH
    http_log_path: Optional[str] = None
    timeout: float = 30.0
    message_seconds: float = 5.0
    download_dir: str = os.path.expanduser("~/Downloads")
    faulthandler: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        http_log = os.getenv("WEBSTORE_HTTP_LOG")
        if http_log is None:
            http_log = os.path.join(os.getcwd(), DEFAULT_HTTP_LOG)
        return cls(
            base_url=os.getenv("WEBSTORE_BASE_URL", BASE_URL),
            session_path=os.getenv("WEBSTORE_SESSION", DEFAULT_SESSION_PATH),
            http_log_path=http_log or None,
            timeout=_env_float("WEBSTORE_TIMEOUT", 30.0),
            message_seconds=_env_float("WEBSTORE_MESSAGE_SECONDS", 5.0),
            download_dir=os.path.expanduser(os.getenv("WEBSTORE_DOWNLOAD_DIR", "~/Downloads")),
            faulthandler=_env_bool("WEBSTORE_FAULTHANDLER", True),
        )
