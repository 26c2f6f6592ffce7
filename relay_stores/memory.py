"""In-memory stores for development and tests."""

from relay_stores.models import Identity, TokenBundle


def _name(value) -> str:
    return str(getattr(value, "value", value))


class InMemorySecretStore:
    """Dict-backed secret store."""

    def __init__(self, initial: dict[tuple[str, str], str] | None = None):
        self._secrets: dict[tuple[str, str], str] = dict(initial or {})

    async def get(self, identity: Identity, slot: str) -> str | None:
        return self._secrets.get((identity.key, _name(slot)))

    async def set(self, identity: Identity, slot: str, value: str) -> None:
        self._secrets[(identity.key, _name(slot))] = value


class InMemoryCredentialStore:
    """Dict-backed OAuth credential store.

    Bundles are copied on the way in and out so callers can't mutate stored
    state behind the store's back.
    """

    def __init__(self):
        self._tokens: dict[tuple[str, str], TokenBundle] = {}

    async def get(self, identity: Identity, provider: str) -> TokenBundle | None:
        bundle = self._tokens.get((identity.key, _name(provider)))
        return bundle.model_copy(deep=True) if bundle else None

    async def upsert(self, identity: Identity, provider: str, bundle: TokenBundle) -> None:
        self._tokens[(identity.key, _name(provider))] = bundle.model_copy(deep=True)
