"""Owner capability check.

Identity itself is established elsewhere; this module only turns a presented
credential into the single boolean the write path consumes. The expected
token is injected once at start-up from settings and never re-read.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass

from pydantic import SecretStr

from .settings import Settings


@dataclass(frozen=True)
class OwnerGate:
    """Decide whether a presented bearer token belongs to the owner.

    With no configured token the gate is closed: nobody is the owner.
    """

    owner_token: SecretStr | None

    @classmethod
    def from_settings(cls, settings: Settings) -> OwnerGate:
        return cls(owner_token=settings.owner_token)

    def is_owner(self, presented: str | None) -> bool:
        if self.owner_token is None or not presented:
            return False
        expected = self.owner_token.get_secret_value()
        if not expected:
            return False
        return hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))

    def is_owner_header(self, authorization: str | None) -> bool:
        """Check an ``Authorization: Bearer <token>`` header value."""
        if not authorization:
            return False
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer":
            return False
        return self.is_owner(token.strip())


__all__ = ["OwnerGate"]
