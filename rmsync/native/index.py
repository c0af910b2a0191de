"""Remote node listing and folder path reconstruction.

The remote returns every document and collection in one flat list. Folder
paths are not stored anywhere; they are rebuilt from ``parent`` links on
each call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..config import SyncSettings
from .errors import ProtocolError, TransferError
from .models import FolderTreeNode, NodeListing, RemoteFolder, RemoteNode
from .transport import check_auth, parse_model, send

logger = logging.getLogger(__name__)

# Sync API endpoint (relative to sync host)
LIST_DOCS_ENDPOINT = "/document-storage/json/2/docs"

# Root folder constant (empty string means root)
ROOT_FOLDER = ""

# Pseudo-parent of deleted nodes
TRASH_FOLDER = "trash"


def build_folder_paths(nodes: Iterable[RemoteNode]) -> dict[str, str]:
    """Compute the canonical path of every collection.

    Walks ``parent`` links iteratively, reusing paths already computed in
    this call. A parent id that is not a known collection counts as the
    root. Collections under the trash are left out.

    Args:
        nodes: Flat listing of documents and collections.

    Returns:
        Mapping of collection id to a path like "/Calendar/Daily".

    Raises:
        ProtocolError: If the parent links contain a cycle.
    """
    folders = {node.id: node for node in nodes if node.is_folder}
    # None marks a trashed collection
    paths: dict[str, str | None] = {}

    for folder_id in folders:
        if folder_id in paths:
            continue

        chain: list[RemoteNode] = []
        visiting: set[str] = set()
        current = folder_id
        prefix: str | None = ""

        while True:
            if current in paths:
                prefix = paths[current]
                break
            if current in visiting:
                raise ProtocolError(f"Cyclic parent links at collection {current}")

            node = folders.get(current)
            if node is None:
                break

            visiting.add(current)
            chain.append(node)

            if node.parent_id == TRASH_FOLDER:
                prefix = None
                break
            if node.parent_id == ROOT_FOLDER:
                break
            current = node.parent_id

        for node in reversed(chain):
            if prefix is not None:
                prefix = f"{prefix}/{node.name}"
            paths[node.id] = prefix

    return {folder_id: path for folder_id, path in paths.items() if path is not None}


def build_folder_tree(nodes: Iterable[RemoteNode]) -> list[RemoteFolder]:
    """Arrange collections into a name-sorted hierarchy.

    Each folder carries the number of documents directly inside it.
    Folders whose parent is unknown are returned at the top level.
    """
    nodes = list(nodes)
    paths = build_folder_paths(nodes)

    document_counts: dict[str, int] = {}
    for node in nodes:
        if node.is_document:
            document_counts[node.parent_id] = document_counts.get(node.parent_id, 0) + 1

    folders: dict[str, RemoteFolder] = {}
    for node in nodes:
        if node.id not in paths:
            continue
        folders[node.id] = RemoteFolder(
            id=node.id,
            name=node.name,
            path=paths[node.id],
            parent_id=node.parent_id or None,
            document_count=document_counts.get(node.id, 0),
        )

    roots: list[RemoteFolder] = []
    for folder in folders.values():
        parent = folders.get(folder.parent_id) if folder.parent_id else None
        if parent is not None:
            parent.children.append(folder)
        else:
            roots.append(folder)

    def sort_level(level: list[RemoteFolder]) -> None:
        level.sort(key=lambda f: f.name.casefold())
        for folder in level:
            sort_level(folder.children)

    sort_level(roots)
    return roots


def to_tree_nodes(folders: list[RemoteFolder]) -> list[FolderTreeNode]:
    return [
        FolderTreeNode(
            id=folder.id,
            name=folder.name,
            path=folder.path,
            children=to_tree_nodes(folder.children),
        )
        for folder in folders
    ]


class RemoteIndex:
    """Reader for the remote's flat node listing.

    Attributes:
        settings: Hosts and timeouts.
    """

    def __init__(self, settings: SyncSettings | None = None) -> None:
        self.settings = settings or SyncSettings()

    def storage_url(self, endpoint: str) -> str:
        """Build full URL for a sync host endpoint."""
        return f"{self.settings.sync_host.rstrip('/')}{endpoint}"

    async def list_all(self, token: str) -> list[RemoteNode]:
        """Fetch every document and collection in one call.

        Raises:
            AuthenticationError: If the token is rejected.
            TransferError: On any other non-success status.
            ProtocolError: If the body is not a node listing.
        """
        response = await send(
            "GET",
            self.storage_url(LIST_DOCS_ENDPOINT),
            timeout=self.settings.request_timeout,
            token=token,
        )

        check_auth(response)
        if response.status_code != 200:
            raise TransferError(
                f"Failed to list nodes: {response.status_code} - {response.text}"
            )

        listing = parse_model(response, NodeListing)
        logger.debug("Listed %d remote nodes", len(listing.docs))
        return listing.docs
