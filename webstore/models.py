import re
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

FileId = Union[int, str]

_FRACTION_RE = re.compile(r"\.(\d+)")


class SortColumn(Enum):
    NAME = "ListName"
    EXTENSION = "Extension"
    DATE = "Date"
    SIZE = "Size"


class SortDirection(Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"

    def flipped(self) -> "SortDirection":
        if self is SortDirection.ASCENDING:
            return SortDirection.DESCENDING
        return SortDirection.ASCENDING


@dataclass(frozen=True)
class SortState:
    column: SortColumn = SortColumn.NAME
    direction: SortDirection = SortDirection.ASCENDING

    def toggled(self, column: SortColumn) -> "SortState":
        if column == self.column:
            return SortState(column, self.direction.flipped())
        return SortState(column, SortDirection.ASCENDING)

    def params(self) -> Dict[str, str]:
        return {"ord": self.direction.value, "col": self.column.value}


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, (int, float)):
        # Heuristic: ms vs seconds
        if value > 10_000_000_000:
            value = value / 1000
        return datetime.fromtimestamp(value)
    text = str(value).strip().replace("Z", "+00:00")
    # fromisoformat on older interpreters wants exactly six fraction digits.
    text = _FRACTION_RE.sub(lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class FileEntry:
    id: FileId
    display_name: str
    extension: str
    size_bytes: int
    modified_at: Optional[datetime] = None

    @property
    def filename(self) -> str:
        return f"{self.display_name}{self.extension}"

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "FileEntry":
        file_id = row.get("ID", row.get("id"))
        if file_id is None:
            raise ValueError(f"File row without id: {row!r}")
        size = int(row.get("Size", row.get("size", row.get("sizeBytes", 0))) or 0)
        return cls(
            id=file_id,
            display_name=row.get("ListName") or row.get("displayName") or row.get("name") or "",
            extension=row.get("Extension") or row.get("extension") or "",
            size_bytes=max(size, 0),
            modified_at=parse_timestamp(row.get("Date", row.get("modifiedAt", row.get("date")))),
        )


class TransferKind(Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"


@dataclass(frozen=True)
class TransferProgress:
    kind: TransferKind
    target_id: Optional[FileId] = None
    percent: int = 0

    def advanced(self, done: int, total: int) -> "TransferProgress":
        """Return the progress for ``done`` of ``total`` bytes, never moving backwards."""
        if total <= 0:
            return self
        percent = min(max(int(round(done * 100 / total)), 0), 100)
        if percent <= self.percent:
            return self
        return replace(self, percent=percent)


@dataclass(frozen=True)
class EditSession:
    field_id: FileId
    original_extension: str
    candidate_name: str
