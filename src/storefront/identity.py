"""Caller identity resolved by the authentication layer in front of the storefront.

Every core operation receives the caller explicitly; nothing reads ambient
session state.
"""

from dataclasses import dataclass
from enum import Enum


class Role(Enum):
    GUEST = "guest"
    CUSTOMER = "customer"
    EDITOR = "editor"
    ADMIN = "admin"


@dataclass(frozen=True)
class CallerIdentity:
    user_id: str | None = None
    session_key: str | None = None
    role: Role = Role.GUEST
    email: str | None = None

    def __post_init__(self):
        if not self.user_id and not self.session_key:
            raise ValueError("A caller needs either a user_id or a session_key")

    @classmethod
    def guest(cls, session_key: str, email: str | None = None) -> "CallerIdentity":
        return cls(session_key=session_key, role=Role.GUEST, email=email)

    @classmethod
    def user(cls, user_id: str, role: Role = Role.CUSTOMER, email: str | None = None) -> "CallerIdentity":
        return cls(user_id=str(user_id), role=role, email=email)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_editor(self) -> bool:
        return self.role == Role.EDITOR
