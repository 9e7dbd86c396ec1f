import logging
import os
import re
from datetime import date, datetime
from typing import Any, Dict, Optional

from .config import debug_enabled


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter('%(levelname)s %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)
    return logger


def redacted_headers(headers: Dict[str, Any]) -> Dict[str, Any]:
    redacted = {}
    for k, v in headers.items():
        if k.lower() in ('authorization', 'cookie', 'set-cookie'):
            redacted[k] = '[REDACTED]'
        else:
            redacted[k] = v
    return redacted


def redact_payload(payload: Any) -> Any:
    if not isinstance(payload, (dict, list)):
        return payload
    secret_keys = (
        "token",
        "password",
        "authorization",
        "cookie",
    )
    if isinstance(payload, list):
        return [redact_payload(item) for item in payload]
    redacted: Dict[str, Any] = {}
    for key, value in payload.items():
        key_l = str(key).lower()
        if any(k in key_l for k in secret_keys):
            redacted[key] = "***"
        else:
            redacted[key] = redact_payload(value)
    return redacted


_LOG_ROTATION_CACHE: Dict[str, date] = {}


def _rotation_date_for_path(path: str) -> Optional[date]:
    cached = _LOG_ROTATION_CACHE.get(path)
    if cached is not None:
        return cached
    try:
        stat = os.stat(path)
    except OSError:
        return None
    return datetime.fromtimestamp(stat.st_mtime).date()


def _rotate_log_if_needed(path: str, today: date, keep_days: int) -> None:
    current_date = _rotation_date_for_path(path)
    if current_date is None or current_date == today:
        return

    base_dir = os.path.dirname(path) or "."
    base_name = os.path.basename(path)
    date_str = current_date.strftime("%Y-%m-%d")
    rotated_path = os.path.join(base_dir, f"{base_name}.{date_str}.log")

    suffix = 1
    while os.path.exists(rotated_path):
        rotated_path = os.path.join(base_dir, f"{base_name}.{date_str}-{suffix}.log")
        suffix += 1

    try:
        os.replace(path, rotated_path)
    except OSError:
        return
    _LOG_ROTATION_CACHE.pop(path, None)

    if keep_days > 0:
        _cleanup_rotated(base_dir, base_name, today, keep_days)


def _cleanup_rotated(base_dir: str, base_name: str, today: date, keep_days: int) -> None:
    # Rotated files older than keep_days are removed.
    pattern = re.compile(rf"^{re.escape(base_name)}\.(\d{{4}}-\d{{2}}-\d{{2}})(?:-\d+)?\.log$")
    cutoff = today.toordinal() - keep_days
    try:
        entries = list(os.scandir(base_dir))
    except OSError:
        return

    for entry in entries:
        if not entry.is_file():
            continue
        match = pattern.match(entry.name)
        if not match:
            continue
        try:
            dt = datetime.strptime(match.group(1), "%Y-%m-%d").date()
        except ValueError:
            continue
        if dt.toordinal() <= cutoff:
            try:
                os.remove(entry.path)
            except OSError as exc:
                get_logger("webstore").warning("Could not remove old log %s: %s", entry.path, exc)


def append_log_line(
    path: Optional[str],
    line: str,
    *,
    rotate_daily: bool = False,
    keep_days: int = 7,
) -> None:
    if not path:
        return
    now = datetime.now()
    if rotate_daily:
        _rotate_log_if_needed(path, now.date(), keep_days)
    timestamp = now.strftime("%Y-%m-%d %H:%M:%S")
    safe_line = line.rstrip("\n")
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(f"[{timestamp}] {safe_line}\n")
    _LOG_ROTATION_CACHE[path] = now.date()


def truncate_text(text: str, limit: int = 2000) -> str:
    if text is None:
        return ""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}...[truncated {len(text) - limit} chars]"


def format_bytes(num: int) -> str:
    if num < 1024000:
        return f"{num / 1024:.0f} KB"
    if num < 1024000000:
        return f"{num / 1024000:.2f} MB"
    return f"{num / 1024000000:.2f} GB"


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime("%d.%m.%Y %H:%M")


def capitalize_message(text: str) -> str:
    if not text:
        return ""
    return text[0].upper() + text[1:]
