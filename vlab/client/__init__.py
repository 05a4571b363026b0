"""In-process client state: auth and project stores, workspace loader."""

from .backend import DatabaseWorkspaceBackend, WorkspaceBackend
from .loader import WorkspaceData, WorkspaceLoader, WorkspaceLoadError, classify_load_error
from .stores import AuthStore, ProjectStore, StoreStatus, friendly_auth_error

__all__ = [
    "AuthStore",
    "DatabaseWorkspaceBackend",
    "ProjectStore",
    "StoreStatus",
    "WorkspaceBackend",
    "WorkspaceData",
    "WorkspaceLoadError",
    "WorkspaceLoader",
    "classify_load_error",
    "friendly_auth_error",
]
