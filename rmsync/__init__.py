# Native Python implementation of the document sync client
from .config import SyncSettings
from .native import CloudClient, TokenManager

__all__ = ["CloudClient", "SyncSettings", "TokenManager"]
