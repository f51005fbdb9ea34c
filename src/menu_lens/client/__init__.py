"""Client-side session management for Menu Lens frontends and scripts."""

from .api import ProtectedClient, SessionUnavailableError
from .issuer import HttpSessionIssuer, IssuedCredentials, SessionIssueError
from .session_manager import EXPIRY_BUFFER_MS, SessionManager
from .storage import ClientSessionRecord, MemorySessionStorage

__all__ = [
    "ClientSessionRecord",
    "EXPIRY_BUFFER_MS",
    "HttpSessionIssuer",
    "IssuedCredentials",
    "MemorySessionStorage",
    "ProtectedClient",
    "SessionIssueError",
    "SessionManager",
    "SessionUnavailableError",
]
