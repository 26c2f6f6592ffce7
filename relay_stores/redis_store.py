"""Redis-backed secret and credential stores.

Key Structure:
- {prefix}:secret:{identity}:{slot} → secret value (string)
- {prefix}:oauth:{identity}:{provider} → TokenBundle (JSON)

{identity} is Identity.key (user:{user} or org:{org}:user:{user}).
"""

from pydantic import ValidationError
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from relay_stores.base import StoreError
from relay_stores.models import Identity, TokenBundle


def _name(value) -> str:
    return str(getattr(value, "value", value))


class RedisConnection:
    """Lazily connected Redis client shared by both stores."""

    def __init__(self, redis_url: str, key_prefix: str = "relay"):
        """Initialize Redis connection holder.

        Args:
            redis_url: Redis connection URL (redis://localhost:6379/0)
            key_prefix: Namespace prepended to every key
        """
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self._client: aioredis.Redis | None = None

    async def connect(self) -> None:
        """Connect to Redis."""
        if self._client is None:
            self._client = aioredis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> aioredis.Redis:
        """Get Redis client.

        Raises:
            StoreError: If not connected
        """
        if self._client is None:
            raise StoreError("Redis store not connected. Call connect() first.")
        return self._client

    def key(self, *parts: str) -> str:
        return ":".join([self.key_prefix, *parts])


class RedisSecretStore:
    """Secret slots stored as plain Redis strings."""

    def __init__(self, connection: RedisConnection):
        self.connection = connection

    async def get(self, identity: Identity, slot: str) -> str | None:
        key = self.connection.key("secret", identity.key, _name(slot))
        try:
            return await self.connection.client.get(key)
        except RedisError as e:
            raise StoreError(f"Secret lookup failed for slot '{_name(slot)}': {e}") from e

    async def set(self, identity: Identity, slot: str, value: str) -> None:
        key = self.connection.key("secret", identity.key, _name(slot))
        try:
            await self.connection.client.set(key, value)
        except RedisError as e:
            raise StoreError(f"Secret write failed for slot '{_name(slot)}': {e}") from e


class RedisCredentialStore:
    """OAuth token bundles stored as JSON documents."""

    def __init__(self, connection: RedisConnection):
        self.connection = connection

    async def get(self, identity: Identity, provider: str) -> TokenBundle | None:
        key = self.connection.key("oauth", identity.key, _name(provider))
        try:
            value = await self.connection.client.get(key)
        except RedisError as e:
            raise StoreError(f"Credential lookup failed for '{_name(provider)}': {e}") from e

        if not value:
            return None
        try:
            return TokenBundle.model_validate_json(value)
        except ValidationError as e:
            raise StoreError(f"Corrupt credential record for '{_name(provider)}'") from e

    async def upsert(self, identity: Identity, provider: str, bundle: TokenBundle) -> None:
        key = self.connection.key("oauth", identity.key, _name(provider))
        try:
            await self.connection.client.set(key, bundle.model_dump_json())
        except RedisError as e:
            raise StoreError(f"Credential write failed for '{_name(provider)}': {e}") from e
