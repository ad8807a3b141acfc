"""Caller resolution for API requests.

An authentication proxy in front of the storefront forwards who the caller is
in ``X-User-*`` headers. Guests are identified by their session key.
"""

from fastapi import Depends, Header, HTTPException

from storefront.exceptions import AccessDeniedError
from storefront.identity import CallerIdentity, Role


def get_caller(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
    x_session_key: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> CallerIdentity:
    if not x_user_id and not x_session_key:
        raise HTTPException(status_code=401, detail="Missing caller identity")

    if not x_user_id:
        return CallerIdentity.guest(x_session_key, email=x_user_email)

    try:
        role = Role(x_user_role or Role.CUSTOMER.value)
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role: {x_user_role}") from None
    if role == Role.GUEST:
        role = Role.CUSTOMER

    return CallerIdentity(user_id=x_user_id, session_key=x_session_key, role=role, email=x_user_email)


def require_admin(caller: CallerIdentity = Depends(get_caller)) -> CallerIdentity:
    if not caller.is_admin:
        raise AccessDeniedError("Administrator access required")
    return caller


def require_editor(caller: CallerIdentity = Depends(get_caller)) -> CallerIdentity:
    if not (caller.is_editor or caller.is_admin):
        raise AccessDeniedError("Editor access required")
    return caller
