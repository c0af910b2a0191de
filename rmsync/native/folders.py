"""Folder lookup and provisioning by slash-separated path."""

from __future__ import annotations

import logging
import uuid

from .errors import TransferError
from .index import ROOT_FOLDER, RemoteIndex, build_folder_paths
from .models import NodeKind, RemoteNode
from .transport import check_auth, parse_model, send

logger = logging.getLogger(__name__)

# Sync API endpoint for creating or updating a node record
NODE_ENDPOINT = "/document-storage/json/2/nodes"


def normalize_path(path: str | None) -> str:
    """Canonicalize a folder path.

    "Calendar/Daily/", "/Calendar//Daily" and "/Calendar/Daily" all become
    "/Calendar/Daily". The root is the empty string.
    """
    parts = [part for part in (path or "").split("/") if part]
    if not parts:
        return ""
    return "/" + "/".join(parts)


def invert_paths(paths: dict[str, str]) -> dict[str, str]:
    """Map each path to a collection id.

    Names are only unique by convention; the first collection listed for a
    path wins.
    """
    index: dict[str, str] = {}
    for folder_id, path in paths.items():
        index.setdefault(path, folder_id)
    return index


class FolderResolver:
    """Resolves and creates folders by path.

    Every call works from a fresh listing; nothing is cached between calls.

    Attributes:
        index: Reader used for the node listing.
    """

    def __init__(self, index: RemoteIndex) -> None:
        self.index = index

    async def path_index(self, token: str) -> dict[str, str]:
        """Build the current path -> collection id map."""
        nodes = await self.index.list_all(token)
        return invert_paths(build_folder_paths(nodes))

    async def resolve(self, token: str, path: str) -> str | None:
        """Look up a folder id by exact path.

        Returns:
            The collection id, ``ROOT_FOLDER`` for the root, or None when the
            path does not exist.
        """
        path = normalize_path(path)
        if not path:
            return ROOT_FOLDER
        return (await self.path_index(token)).get(path)

    async def list_documents_in(self, token: str, path: str) -> list[RemoteNode]:
        """List documents directly inside a folder.

        An unknown path yields an empty list.
        """
        path = normalize_path(path)
        nodes = await self.index.list_all(token)

        if path:
            folder_id = invert_paths(build_folder_paths(nodes)).get(path)
            if folder_id is None:
                logger.debug("Folder %s does not exist", path)
                return []
        else:
            folder_id = ROOT_FOLDER

        return [
            node for node in nodes if node.is_document and node.parent_id == folder_id
        ]

    async def create_node(self, token: str, node: RemoteNode) -> RemoteNode:
        """Create or update a node record.

        Raises:
            AuthenticationError: If the token is rejected.
            TransferError: On any other non-success status.
            ProtocolError: If the response is not a node record.
        """
        response = await send(
            "PUT",
            self.index.storage_url(NODE_ENDPOINT),
            timeout=self.index.settings.request_timeout,
            token=token,
            json=node.model_dump(mode="json", by_alias=True),
        )

        check_auth(response)
        if response.status_code != 200:
            raise TransferError(
                f"Node update failed: {response.status_code} - {response.text}"
            )

        return parse_model(response, RemoteNode)

    async def create_collection(
        self, token: str, name: str, parent_id: str = ROOT_FOLDER
    ) -> RemoteNode:
        """Create a single collection under ``parent_id``."""
        folder = RemoteNode(
            id=str(uuid.uuid4()),
            version=1,
            name=name,
            kind=NodeKind.COLLECTION,
            parent_id=parent_id,
            last_modified=RemoteNode.now_timestamp(),
            pinned=False,
        )
        return await self.create_node(token, folder)

    async def get_or_create(self, token: str, path: str) -> str:
        """Return the id of a folder, creating missing segments.

        Segments are checked left to right against a fresh listing. This is
        not transactional: if a creation fails, the ancestors created so far
        stay and a retry picks them up.

        Args:
            token: User token.
            path: Folder path like "/Calendar/Daily".

        Returns:
            Id of the last segment, or ``ROOT_FOLDER`` for the root.
        """
        segments = [part for part in normalize_path(path).split("/") if part]

        parent_id = ROOT_FOLDER
        prefix = ""
        for segment in segments:
            prefix = f"{prefix}/{segment}"
            existing = (await self.path_index(token)).get(prefix)
            if existing is not None:
                parent_id = existing
                continue

            logger.info("Creating folder %s", prefix)
            created = await self.create_collection(token, segment, parent_id)
            parent_id = created.id

        return parent_id
