"""Store interfaces.

The engine only reads secrets; it writes OAuth tokens back solely after a
successful refresh.
"""

from typing import Protocol

from relay_stores.models import Identity, TokenBundle


class StoreError(Exception):
    """Backend failure while reading or writing a store."""

    pass


class SecretStore(Protocol):
    """Per-identity secret slots (API keys, action confirmations)."""

    async def get(self, identity: Identity, slot: str) -> str | None:
        """Get a secret value, or None if absent."""
        ...

    async def set(self, identity: Identity, slot: str, value: str) -> None:
        """Store a secret value."""
        ...


class CredentialStore(Protocol):
    """Per-identity OAuth tokens, keyed by OAuth provider."""

    async def get(self, identity: Identity, provider: str) -> TokenBundle | None:
        """Get the token bundle, or None if never authorized."""
        ...

    async def upsert(self, identity: Identity, provider: str, bundle: TokenBundle) -> None:
        """Create or replace the token bundle."""
        ...
