from collections.abc import Callable

from fastapi import Cookie, Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from .database import get_db_session
from .models import Account, AccountRole
from .security import AuthError, decode_access_token


def _parse_token(auth_header: str | None, cookie_token: str | None) -> str | None:
    if auth_header:
        parts = auth_header.split(" ", 1)
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth scheme")
        return parts[1].strip() or None
    return cookie_token or None


def get_current_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
    token: str | None = Cookie(default=None),
    db: Session = Depends(get_db_session),
) -> Account:
    raw = _parse_token(authorization, token)
    if not raw:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")
    try:
        payload = decode_access_token(raw)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    account = db.query(Account).filter(Account.id == payload["id"]).first()
    if not account:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user")
    return account


def get_optional_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
    token: str | None = Cookie(default=None),
    db: Session = Depends(get_db_session),
) -> Account | None:
    try:
        return get_current_user(authorization=authorization, token=token, db=db)
    except HTTPException:
        return None


def require_roles(*allowed_roles: AccountRole) -> Callable:
    def dependency(current_user: Account = Depends(get_current_user)) -> Account:
        if current_user.role not in allowed_roles:
            required = ", ".join(role.value for role in allowed_roles)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail=f"Access denied. Required role: {required}"
            )
        return current_user

    return dependency


def parse_school_id(raw: str | int | None) -> int:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise HTTPException(status_code=400, detail="schoolId is required as a query parameter.")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail="schoolId must be a valid number.") from exc


def check_tenant(school_id: int, current_user: Account | None) -> None:
    if current_user is not None and current_user.school_id != school_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied for this school")


def school_scope(
    school_id: str | None = Query(default=None, alias="schoolId"),
    current_user: Account | None = Depends(get_optional_user),
) -> int:
    """Tenant id for the request, taken from the ``schoolId`` query parameter.

    Signed-in callers may only address their own school. Anonymous callers
    are scoped by the parameter alone.
    """
    value = parse_school_id(school_id)
    check_tenant(value, current_user)
    return value
