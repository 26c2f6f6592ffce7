"""Relay secret and credential stores.

Usage:
    from relay_stores import InMemorySecretStore, Identity

    secrets = InMemorySecretStore()
    await secrets.set(Identity(user_id="u1"), "api_secret_key", "sk_test_1")
"""

from relay_stores.base import CredentialStore, SecretStore, StoreError
from relay_stores.memory import InMemoryCredentialStore, InMemorySecretStore
from relay_stores.models import Identity, TokenBundle
from relay_stores.redis_store import RedisConnection, RedisCredentialStore, RedisSecretStore

__all__ = [
    "CredentialStore",
    "SecretStore",
    "StoreError",
    "InMemoryCredentialStore",
    "InMemorySecretStore",
    "Identity",
    "TokenBundle",
    "RedisConnection",
    "RedisCredentialStore",
    "RedisSecretStore",
]
