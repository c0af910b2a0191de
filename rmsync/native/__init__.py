"""Native Python client for the document sync cloud."""

from .auth import SessionTokenCache, TokenManager
from .cloud import SUGGESTED_FOLDER_PATHS, CloudClient
from .errors import (
    AuthenticationError,
    ConfigError,
    NetworkError,
    NotConnectedError,
    NotFoundError,
    ProtocolError,
    SyncError,
    TransferError,
)
from .folders import FolderResolver, normalize_path
from .index import RemoteIndex, build_folder_paths, build_folder_tree
from .models import (
    CachedToken,
    Credential,
    FolderTreeNode,
    NodeKind,
    RemoteFolder,
    RemoteNode,
    UploadResult,
)
from .store import CredentialStore, MemoryCredentialStore, YamlCredentialStore
from .transfer import DocumentTransfer

__all__ = [
    # Auth
    "CachedToken",
    "Credential",
    "CredentialStore",
    "MemoryCredentialStore",
    "SessionTokenCache",
    "TokenManager",
    "YamlCredentialStore",
    # Index and folders
    "FolderResolver",
    "FolderTreeNode",
    "NodeKind",
    "RemoteFolder",
    "RemoteIndex",
    "RemoteNode",
    "build_folder_paths",
    "build_folder_tree",
    "normalize_path",
    # Transfer
    "CloudClient",
    "DocumentTransfer",
    "SUGGESTED_FOLDER_PATHS",
    "UploadResult",
    # Errors
    "AuthenticationError",
    "ConfigError",
    "NetworkError",
    "NotConnectedError",
    "NotFoundError",
    "ProtocolError",
    "SyncError",
    "TransferError",
]
