from dataclasses import dataclass
from typing import Optional

from ..client import StorageClient
from ..config import Settings
from ..session import Session
from ..workspace import Workspace


@dataclass
class AppState:
    settings: Settings
    client: StorageClient
    session: Session
    workspace: Optional[Workspace] = None
