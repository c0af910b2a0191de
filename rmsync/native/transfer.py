"""Document download and upload.

Download:
1. Ask the sync host for a signed download URL
2. GET the bytes from that URL (no token)

Upload:
1. Resolve or create the destination folder
2. Ask the sync host for a signed upload URL
3. PUT the bytes to that URL (no token)
4. Register the document node

The remote has no transactions. If step 4 fails the blob stays uploaded but
unregistered; each step is a public method so callers can retry or clean up.
"""

from __future__ import annotations

import logging
import uuid

from ..config import SyncSettings
from .errors import NotFoundError, TransferError
from .folders import FolderResolver
from .models import NodeKind, RemoteNode, SignedUrl, UploadResult, UploadUrlRequest
from .transport import check_auth, parse_model, send

logger = logging.getLogger(__name__)

# Sync API endpoints (relative to sync host)
DOWNLOAD_URL_ENDPOINT = "/document-storage/json/2/download"
UPLOAD_URL_ENDPOINT = "/document-storage/json/2/upload/request"

PDF_CONTENT_TYPE = "application/pdf"


def display_name(name: str) -> str:
    """Strip a trailing .pdf so the device shows a clean title."""
    if name.lower().endswith(".pdf"):
        name = name[:-4]
    return name.strip() or "Untitled"


class DocumentTransfer:
    """Moves PDF bytes to and from the remote.

    Attributes:
        folders: Resolver used to find or create the upload destination.
    """

    def __init__(self, folders: FolderResolver) -> None:
        self.folders = folders

    @property
    def settings(self) -> SyncSettings:
        return self.folders.index.settings

    async def request_download_url(self, token: str, document_id: str) -> str:
        """Get a signed URL for a document's content.

        Raises:
            NotFoundError: If the remote does not return a URL.
        """
        response = await send(
            "GET",
            self.folders.index.storage_url(DOWNLOAD_URL_ENDPOINT),
            timeout=self.settings.request_timeout,
            token=token,
            params={"doc": document_id},
        )

        check_auth(response)
        if response.status_code != 200:
            raise NotFoundError(
                f"Document not found: {document_id} ({response.status_code})"
            )

        return parse_model(response, SignedUrl).url

    async def fetch_blob(self, url: str) -> bytes:
        """GET the bytes behind a signed URL.

        Raises:
            TransferError: On a non-success status.
        """
        response = await send("GET", url, timeout=self.settings.blob_timeout)

        if response.status_code != 200:
            raise TransferError(
                f"Download failed: {response.status_code} - {response.text}"
            )

        return response.content

    async def download(self, token: str, document_id: str) -> bytes:
        """Download a document's raw content."""
        url = await self.request_download_url(token, document_id)
        content = await self.fetch_blob(url)
        logger.info("Downloaded %s (%d bytes)", document_id, len(content))
        return content

    async def request_upload_url(self, token: str, document_id: str) -> str:
        """Get a signed URL to PUT a new document's content to.

        Raises:
            TransferError: On a non-success status.
        """
        request = UploadUrlRequest(doc_id=document_id, doc_type="pdf")

        response = await send(
            "PUT",
            self.folders.index.storage_url(UPLOAD_URL_ENDPOINT),
            timeout=self.settings.request_timeout,
            token=token,
            json=request.model_dump(by_alias=True),
        )

        check_auth(response)
        if response.status_code != 200:
            raise TransferError(
                f"Upload request failed: {response.status_code} - {response.text}"
            )

        return parse_model(response, SignedUrl).url

    async def put_blob(self, url: str, data: bytes) -> None:
        """PUT PDF bytes to a signed URL.

        Raises:
            TransferError: On a non-success status.
        """
        response = await send(
            "PUT",
            url,
            timeout=self.settings.blob_timeout,
            content=data,
            headers={"Content-Type": PDF_CONTENT_TYPE},
        )

        if response.status_code not in (200, 201):
            raise TransferError(
                f"Blob upload failed: {response.status_code} - {response.text}"
            )

    async def register_document(
        self, token: str, document_id: str, name: str, folder_id: str
    ) -> RemoteNode:
        """Create the node record for uploaded content."""
        document = RemoteNode(
            id=document_id,
            version=1,
            name=name,
            kind=NodeKind.DOCUMENT,
            parent_id=folder_id,
            last_modified=RemoteNode.now_timestamp(),
            pinned=False,
        )
        return await self.folders.create_node(token, document)

    async def upload(
        self, token: str, data: bytes, name: str, folder_path: str = ""
    ) -> UploadResult:
        """Upload a PDF into a folder, creating the folder if needed.

        Args:
            token: User token.
            data: PDF bytes.
            name: Display name for the document.
            folder_path: Destination like "/Calendar"; empty or "/" is root.

        Returns:
            UploadResult with the new document id.
        """
        document_id = str(uuid.uuid4())
        name = display_name(name)

        folder_id = await self.folders.get_or_create(token, folder_path)
        url = await self.request_upload_url(token, document_id)
        await self.put_blob(url, data)
        logger.debug("Uploaded content for %s, registering node", document_id)
        await self.register_document(token, document_id, name, folder_id)

        logger.info(
            "Uploaded %r to %s as %s", name, folder_path or "/", document_id
        )
        return UploadResult(
            document_id=document_id,
            folder_id=folder_id,
            name=name,
            size=len(data),
        )
