"""Store data models.

Identity scopes every secret and OAuth token; TokenBundle is the OAuth
credential record owned by the credential store.
"""

from datetime import datetime, timedelta, timezone
from urllib.parse import quote

from pydantic import BaseModel, Field


class Identity(BaseModel):
    """Caller context under which secrets and tokens are scoped."""

    user_id: str = Field(..., min_length=1)
    organization_id: str | None = None

    @property
    def key(self) -> str:
        """Stable store key for this identity.

        Components are percent-encoded so ":" only ever separates them:
        "user:u1" or "org:acme:user:u1".
        """
        user = f"user:{quote(self.user_id, safe='')}"
        if self.organization_id:
            return f"org:{quote(self.organization_id, safe='')}:{user}"
        return user

    def __str__(self) -> str:
        return self.key


class TokenBundle(BaseModel):
    """OAuth credential for one (identity, provider) pair."""

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None
    scopes: list[str] = Field(default_factory=list)

    def is_expired(self, skew_seconds: int = 0) -> bool:
        """Check whether the access token is expired (or about to be).

        Args:
            skew_seconds: Treat tokens expiring within this window as expired

        Returns:
            True if the token must be refreshed before use
        """
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        now = datetime.now(timezone.utc)
        return expires_at <= now + timedelta(seconds=skew_seconds)

    def covers(self, required_scopes: list[str]) -> bool:
        """True if granted scopes are a superset of required scopes."""
        return set(required_scopes).issubset(self.scopes)
