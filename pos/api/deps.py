from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from pos.core.security import decode_token
from pos.db import SessionLocal
from pos.db.models.user import User
from pos.repositories.scoped import TenantScope
from pos.services.tenant import resolve_member_scope, resolve_public_scope

# Tokens are issued by the identity provider; this service only verifies them.
# auto_error is off so a missing header is a 401 like any other bad token.
bearer_scheme = HTTPBearer(auto_error=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Get the current authenticated user from JWT token."""
    if credentials is None:
        raise _credentials_exception("Not authenticated")

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise _credentials_exception()

    # Validate token type - must be "access" token
    if payload.get("type") != "access":
        raise _credentials_exception()

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _credentials_exception()

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise _credentials_exception("User not found")

    return user


def require_roles(*role_names: str):
    """
    Create a dependency that requires the current user to have one of the specified roles.

    Example:
        Depends(require_roles("platform_admin"))
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role.name not in role_names:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return role_checker


def get_tenant_scope(
    slug: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TenantScope:
    """Tenant of the ``{slug}`` path segment, checked against the caller's account."""
    return resolve_member_scope(db, slug, current_user)


def require_tenant_roles(*role_names: str):
    """
    Like ``get_tenant_scope``, additionally requiring one of ``role_names``.

    Platform admins always pass.

    Example:
        Depends(require_tenant_roles("admin", "manager"))
    """
    def scope_checker(
        slug: str,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ) -> TenantScope:
        scope = resolve_member_scope(db, slug, current_user)
        if current_user.role.name not in (*role_names, "platform_admin"):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return scope

    return scope_checker


def get_public_tenant_scope(slug: str, db: Session = Depends(get_db)) -> TenantScope:
    """Tenant resolved from the ``{slug}`` path segment, without authentication."""
    return resolve_public_scope(db, slug)
