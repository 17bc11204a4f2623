"""Roles, capabilities and the per-request session context."""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar
import re
import unicodedata

from finops.domain.errors import InvalidValueObjectError


class AppRole(str, Enum):
    """Closed set of roles a whitelisted user may hold."""

    ADMIN = "admin"
    MANAGER = "manager"
    VIEWER = "viewer"


class Capability(str, Enum):
    """What a role allows the caller to do."""

    VIEW = "view"
    EDIT = "edit"
    ADMINISTER = "administer"


ROLE_CAPABILITIES: dict[AppRole, frozenset[Capability]] = {
    AppRole.VIEWER: frozenset({Capability.VIEW}),
    AppRole.MANAGER: frozenset({Capability.VIEW, Capability.EDIT}),
    AppRole.ADMIN: frozenset({Capability.VIEW, Capability.EDIT, Capability.ADMINISTER}),
}


def capabilities_for(role: AppRole) -> frozenset[Capability]:
    """Return the capability set granted to a role."""
    return ROLE_CAPABILITIES[role]


@dataclass(frozen=True)
class EmailAddress:
    """E-mail normalized to lower case without surrounding whitespace."""

    value: str
    _pattern: ClassVar[re.Pattern[str]] = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise InvalidValueObjectError("EmailAddress", "must be a string")

        normalized = unicodedata.normalize("NFKC", self.value).strip().lower()
        if len(normalized) > 255 or not self._pattern.match(normalized):
            raise InvalidValueObjectError("EmailAddress", "invalid format")

        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value


def normalize_email(raw: str) -> str:
    """Lower-case and trim an e-mail address for whitelist lookups."""
    return EmailAddress(raw).value


@dataclass(frozen=True)
class SessionContext:
    """Authenticated caller, passed explicitly to every use case.

    The role is the one read from the whitelist when the request was
    authorized, not the one embedded in the token.
    """

    user_id: str
    email: str
    role: AppRole
    display_name: str | None = None
    mfa_verified: bool = False
    token_id: str | None = None
    capabilities: frozenset[Capability] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "capabilities", capabilities_for(self.role))

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities

    @property
    def is_admin(self) -> bool:
        return self.has(Capability.ADMINISTER)

    @property
    def can_edit(self) -> bool:
        return self.has(Capability.EDIT)

    @property
    def audit_name(self) -> str:
        """Name written to audit rows: profile name, else e-mail, else 'Sistema'."""
        return self.display_name or self.email or "Sistema"
