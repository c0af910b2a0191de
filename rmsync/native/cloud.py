"""Per-user facade over the sync client components.

Operations:
- List documents (everything, or one folder)
- Browse the folder hierarchy
- Create folders by path
- Upload PDFs
- Download documents

Every operation first obtains a valid user token, which may cost one
network round trip, then runs its chain of calls in order.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ..config import SyncSettings
from .auth import TokenManager
from .errors import SyncError
from .folders import FolderResolver, normalize_path
from .index import RemoteIndex, build_folder_tree, to_tree_nodes
from .models import FolderTreeNode, RemoteFolder, RemoteNode, UploadResult
from .store import YamlCredentialStore
from .transfer import DocumentTransfer

if TYPE_CHECKING:
    from typing import Self

logger = logging.getLogger(__name__)

SUGGESTED_FOLDER_PATHS = [
    "/Calendar",
    "/Calendar/Daily Agenda",
    "/Calendar/Weekly Planner",
    "/Calendar/Notes",
    "/Calendar/Habit Tracker",
    "/Calendar/Processed",
    "/Work",
    "/Personal",
    "/Projects",
]


class CloudClient:
    """Document sync client bound to one user.

    Example:
        >>> tokens = TokenManager(YamlCredentialStore())
        >>> cloud = CloudClient(tokens, "alice")
        >>> await cloud.create_folder("/Calendar/Daily Agenda")
        >>> doc_id = await cloud.upload_pdf(pdf, "Agenda", "/Calendar/Daily Agenda")
        >>> pdf_again = await cloud.download_document(doc_id)

    Attributes:
        tokens: Token manager shared by all users of the process.
        user_id: Owner of the credential used for every call.
    """

    def __init__(self, tokens: TokenManager, user_id: str) -> None:
        self.tokens = tokens
        self.user_id = user_id
        self.index = RemoteIndex(tokens.settings)
        self.folders = FolderResolver(self.index)
        self.transfer = DocumentTransfer(self.folders)

    async def _token(self) -> str:
        return await self.tokens.get_valid_token(self.user_id)

    def is_connected(self) -> bool:
        return self.tokens.is_connected(self.user_id)

    async def test_connection(self) -> bool:
        """Check that the stored credential can list the remote."""
        try:
            await self.index.list_all(await self._token())
        except SyncError as e:
            logger.error("Sync connection test failed for %s: %s", self.user_id, e)
            return False
        return True

    async def get_documents(self, folder_path: str | None = None) -> list[RemoteNode]:
        """List remote nodes.

        Args:
            folder_path: If given, only documents directly inside this folder.
                If None, the full listing of documents and folders.
        """
        token = await self._token()
        if folder_path is None:
            return await self.index.list_all(token)

        documents = await self.folders.list_documents_in(token, folder_path)
        logger.info(
            "Found %d documents in %s", len(documents), normalize_path(folder_path) or "/"
        )
        return documents

    async def get_folders(self) -> list[RemoteFolder]:
        """Get the folder hierarchy with document counts."""
        nodes = await self.index.list_all(await self._token())
        return build_folder_tree(nodes)

    async def get_folder_tree(self) -> list[FolderTreeNode]:
        """Get the folder hierarchy without document counts."""
        return to_tree_nodes(await self.get_folders())

    async def get_folder_by_path(self, folder_path: str) -> RemoteFolder | None:
        path = normalize_path(folder_path)
        pending = await self.get_folders()
        while pending:
            folder = pending.pop()
            if folder.path == path:
                return folder
            pending.extend(folder.children)
        return None

    async def folder_exists(self, folder_path: str) -> bool:
        return await self.get_folder_by_path(folder_path) is not None

    async def create_folder(self, folder_path: str) -> str:
        """Make sure a folder path exists and return its id."""
        return await self.folders.get_or_create(await self._token(), folder_path)

    async def upload_pdf(self, data: bytes, name: str, folder_path: str = "") -> str:
        """Upload a PDF and record the sync time.

        Returns:
            Id of the new document.
        """
        result = await self.upload(data, name, folder_path)
        return result.document_id

    async def upload(self, data: bytes, name: str, folder_path: str = "") -> UploadResult:
        result = await self.transfer.upload(await self._token(), data, name, folder_path)
        self.tokens.mark_synced(self.user_id)
        return result

    async def download_document(self, document_id: str) -> bytes:
        return await self.transfer.download(await self._token(), document_id)

    @classmethod
    def from_config(
        cls,
        user_id: str,
        credentials_path: str | Path | None = None,
        settings: SyncSettings | None = None,
    ) -> Self:
        """Create a CloudClient backed by the YAML credential file.

        Args:
            user_id: Owner of the credential.
            credentials_path: Credential file. If None, uses default location.
            settings: Hosts and timeouts. If None, read from the environment.

        Returns:
            Configured CloudClient.
        """
        tokens = TokenManager(YamlCredentialStore(credentials_path), settings)
        return cls(tokens, user_id)
