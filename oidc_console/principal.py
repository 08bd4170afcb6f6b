"""Authenticated principal and claims."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class Claims:
    """Standard claim types (OpenID Connect Core 1.0, Section 5.1)."""

    SUBJECT = "sub"
    NAME = "name"
    PREFERRED_USERNAME = "preferred_username"
    EMAIL = "email"


@dataclass(frozen=True)
class ClaimsPrincipal:
    """Identity returned by a successful interactive login."""

    provider: str
    claims: Mapping[str, Any] = field(default_factory=dict)

    def find_first(self, claim_type: str) -> str | None:
        """Get the first value of a claim.

        Multi-valued claims return their first element. Null and empty values
        are treated as absent.

        Args:
            claim_type: Claim name (e.g. Claims.NAME)

        Returns:
            Claim value as a string, or None if the claim is absent
        """
        value = self.claims.get(claim_type)
        if isinstance(value, list | tuple):
            value = value[0] if value else None
        if value is None or value == "":
            return None
        return str(value)

    def has_claim(self, claim_type: str) -> bool:
        """Check if the principal carries a claim."""
        return self.find_first(claim_type) is not None


@dataclass(frozen=True)
class AuthenticationResult:
    """Outcome of a completed interactive authentication."""

    provider: str
    principal: ClaimsPrincipal
    token_response: Mapping[str, Any] = field(default_factory=dict, repr=False)
