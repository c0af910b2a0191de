"""Token lifecycle for the document sync API.

Authentication Flow:
1. User obtains a one-time code from the cloud's device pairing page
2. Client exchanges code for a device token (long-lived)
3. Client exchanges device token for a user token (short-lived, refreshed)

The remote never reports when a user token expires. Tokens live 24 hours
server-side, so the client stamps each new token with ``now + 23h`` and
refreshes any persisted token with less than an hour left.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from ..config import SyncSettings
from .errors import AuthenticationError, NotConnectedError, ProtocolError
from .models import CachedToken, Credential, DeviceRegistrationRequest
from .store import CredentialStore
from .transport import send

logger = logging.getLogger(__name__)

# Auth API endpoints (relative to auth host)
DEVICE_TOKEN_ENDPOINT = "/token/json/2/device/new"
USER_TOKEN_ENDPOINT = "/token/json/2/user/new"

USER_TOKEN_LIFETIME = timedelta(hours=23)
REFRESH_BUFFER = timedelta(hours=1)


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SessionTokenCache:
    """Process-local user tokens keyed by user id.

    Entries are immutable ``CachedToken`` pairs replaced in a single
    assignment, so a reader never sees a token with another token's expiry.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CachedToken] = {}

    def get(self, user_id: str) -> CachedToken | None:
        return self._entries.get(user_id)

    def set(self, user_id: str, entry: CachedToken) -> None:
        self._entries[user_id] = entry

    def clear(self, user_id: str) -> None:
        self._entries.pop(user_id, None)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._entries


class TokenManager:
    """Owns device registration and user token refresh.

    Example:
        >>> manager = TokenManager(YamlCredentialStore())
        >>> await manager.connect("alice", "abcd1234")
        >>> token = await manager.get_valid_token("alice")

    Attributes:
        store: Persistent credential store, authoritative over the cache.
        cache: In-memory user tokens for the lifetime of the process.
        settings: Hosts and timeouts.
    """

    def __init__(
        self,
        store: CredentialStore,
        settings: SyncSettings | None = None,
        *,
        cache: SessionTokenCache | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.settings = settings or SyncSettings()
        self.cache = cache or SessionTokenCache()
        self._clock = clock

    def _auth_url(self, endpoint: str) -> str:
        return f"{self.settings.auth_host.rstrip('/')}{endpoint}"

    async def register_device(self, code: str) -> str:
        """Exchange a one-time pairing code for a device token.

        Args:
            code: One-time code from the device pairing page.

        Returns:
            The new device token.

        Raises:
            AuthenticationError: If the remote rejects the code.
            ProtocolError: If the response body is empty.
            NetworkError: On transport failures.
        """
        request = DeviceRegistrationRequest(
            code=code,
            device_desc=self.settings.device_desc,
            device_id=str(uuid.uuid4()),
        )

        response = await send(
            "POST",
            self._auth_url(DEVICE_TOKEN_ENDPOINT),
            timeout=self.settings.request_timeout,
            json=request.model_dump(by_alias=True),
        )

        if response.status_code != 200:
            raise AuthenticationError(
                f"Registration failed: {response.status_code} - {response.text}"
            )

        device_token = response.text.strip()
        if not device_token:
            raise ProtocolError("Received empty device token")

        return device_token

    async def exchange_user_token(self, device_token: str) -> CachedToken:
        """Trade the device token for a fresh user token.

        Raises:
            AuthenticationError: If the remote rejects the device token.
            ProtocolError: If the response body is empty.
            NetworkError: On transport failures.
        """
        response = await send(
            "POST",
            self._auth_url(USER_TOKEN_ENDPOINT),
            timeout=self.settings.request_timeout,
            token=device_token,
        )

        if response.status_code != 200:
            raise AuthenticationError(
                f"Token refresh failed: {response.status_code} - {response.text}"
            )

        user_token = response.text.strip()
        if not user_token:
            raise ProtocolError("Received empty user token")

        return CachedToken(
            token=user_token,
            expires_at=self._clock() + USER_TOKEN_LIFETIME,
        )

    async def get_valid_token(self, user_id: str) -> str:
        """Return a user token that is safe to use right now.

        Tries the memory cache, then the persisted token, and only then asks
        the remote for a new one. The store is authoritative: a cached token
        is only served while the user's credential still exists, and a
        refreshed token is merged into the record as it stands after the
        exchange.

        Raises:
            NotConnectedError: If the user has no credential.
            AuthenticationError: If the refresh is rejected.
        """
        now = self._clock()

        credential = self.store.get(user_id)
        if credential is None:
            self.cache.clear(user_id)
            raise NotConnectedError(f"No sync credential for user {user_id}")

        cached = self.cache.get(user_id)
        if cached is not None and cached.expires_at > now:
            return cached.token

        if (
            credential.user_token
            and credential.user_token_expires_at is not None
            and credential.user_token_expires_at > now + REFRESH_BUFFER
        ):
            entry = CachedToken(
                token=credential.user_token,
                expires_at=credential.user_token_expires_at,
            )
            self.cache.set(user_id, entry)
            return entry.token

        logger.info("Refreshing user token for %s", user_id)
        entry = await self.exchange_user_token(credential.device_token)

        # The record may have changed while the exchange was in flight.
        current = self.store.get(user_id)
        if current is None:
            self.cache.clear(user_id)
            raise NotConnectedError(f"User {user_id} disconnected during token refresh")

        # Persist first: the store must never lag behind the cache.
        self.store.put(
            user_id,
            current.model_copy(
                update={
                    "user_token": entry.token,
                    "user_token_expires_at": entry.expires_at,
                }
            ),
        )
        self.cache.set(user_id, entry)
        return entry.token

    async def connect(self, user_id: str, code: str) -> Credential:
        """Pair a device and store the resulting credential.

        Args:
            user_id: Owner of the credential.
            code: One-time pairing code.

        Returns:
            The stored credential.
        """
        logger.info("Connecting %s to the sync cloud", user_id)

        device_token = await self.register_device(code)
        entry = await self.exchange_user_token(device_token)

        credential = Credential(
            device_token=device_token,
            user_token=entry.token,
            user_token_expires_at=entry.expires_at,
            is_connected=True,
        )
        self.store.put(user_id, credential)
        self.cache.set(user_id, entry)

        logger.info("Connected %s to the sync cloud", user_id)
        return credential

    def disconnect(self, user_id: str) -> None:
        """Forget the user's credential and cached token."""
        self.store.delete(user_id)
        self.cache.clear(user_id)
        logger.info("Disconnected %s from the sync cloud", user_id)

    def is_connected(self, user_id: str) -> bool:
        credential = self.store.get(user_id)
        return credential is not None and credential.is_connected

    def mark_synced(self, user_id: str) -> None:
        """Stamp the credential with the time of the last successful sync."""
        credential = self.store.get(user_id)
        if credential is None:
            raise NotConnectedError(f"No sync credential for user {user_id}")
        self.store.put(
            user_id, credential.model_copy(update={"last_sync_at": self._clock()})
        )
