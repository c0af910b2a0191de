"""Pydantic models for the document sync API."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class DeviceRegistrationRequest(BaseModel):
    """Request body for device registration."""

    code: str = Field(..., description="One-time pairing code")
    device_desc: str = Field(
        default="desktop-linux",
        alias="deviceDesc",
        description="Device description",
    )
    device_id: str = Field(
        ...,
        alias="deviceID",
        description="Unique device identifier (UUID)",
    )

    model_config = {"populate_by_name": True}


class Credential(BaseModel):
    """Per-user credential record kept in the credential store."""

    device_token: str = Field(
        ...,
        alias="deviceToken",
        description="Long-lived device token",
    )
    user_token: str | None = Field(
        default=None,
        alias="userToken",
        description="Short-lived user token",
    )
    user_token_expires_at: datetime | None = Field(
        default=None,
        alias="userTokenExpiresAt",
        description="Client-side estimate of the user token expiry",
    )
    is_connected: bool = Field(default=True, alias="isConnected")
    last_sync_at: datetime | None = Field(default=None, alias="lastSyncAt")

    model_config = {"populate_by_name": True}


class CachedToken(BaseModel):
    """A user token paired with its expiry.

    Frozen so the pair is always replaced as a whole.
    """

    token: str
    expires_at: datetime

    model_config = {"frozen": True}


# =============================================================================
# Sync API Models
# =============================================================================


class NodeKind(str, Enum):
    """Type of node in the remote storage."""

    DOCUMENT = "DocumentType"
    COLLECTION = "CollectionType"


class RemoteNode(BaseModel):
    """A document or collection (folder) in the remote storage."""

    id: str = Field(..., description="UUID of the node")
    version: int = Field(default=1, description="Version number for sync")
    name: str = Field(default="", description="Display name of the node")
    kind: NodeKind = Field(..., alias="type", description="Document or collection")
    parent_id: str = Field(
        default="",
        alias="parent",
        description="UUID of parent collection (empty for root nodes)",
    )
    last_modified: str = Field(default="", alias="lastModified")
    pinned: bool = Field(default=False)

    model_config = {"populate_by_name": True}

    @property
    def is_folder(self) -> bool:
        """Check if this node is a folder/collection."""
        return self.kind == NodeKind.COLLECTION

    @property
    def is_document(self) -> bool:
        """Check if this node is a document."""
        return self.kind == NodeKind.DOCUMENT

    @classmethod
    def now_timestamp(cls) -> str:
        """Get current UTC timestamp in the format expected by the API."""
        return datetime.now(tz=UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


class NodeListing(BaseModel):
    """Response from the list nodes endpoint."""

    docs: list[RemoteNode] = Field(default_factory=list)


class SignedUrl(BaseModel):
    """Response carrying a pre-signed blob URL."""

    url: str = Field(..., min_length=1)


class UploadUrlRequest(BaseModel):
    """Request body for a signed upload URL."""

    doc_id: str = Field(..., alias="docID")
    doc_type: str = Field(default="pdf", alias="docType")

    model_config = {"populate_by_name": True}


class UploadResult(BaseModel):
    """Outcome of a completed document upload."""

    document_id: str
    folder_id: str
    name: str
    size: int


class RemoteFolder(BaseModel):
    """Folder with its resolved path, children and document count."""

    id: str
    name: str
    path: str
    parent_id: str | None = None
    children: list[RemoteFolder] = Field(default_factory=list)
    document_count: int = 0


class FolderTreeNode(BaseModel):
    """Simplified folder tree entry for pickers."""

    id: str
    name: str
    path: str
    children: list[FolderTreeNode] = Field(default_factory=list)
