# repository/namespaces.py
from typing import Final

ROOT: Final[str] = "techdoc"

SESSIONS: Final[str] = f"{ROOT}:sessions"
CONTEXTS: Final[str] = f"{SESSIONS}:context"  # per-session conversation state
DOCUMENTS: Final[str] = f"{ROOT}:documents"  # hash per session: doc id -> JSON
BLOBS: Final[str] = f"{DOCUMENTS}:blob"
