"""Request-scoped dependencies for the Marketplace API."""

from fastapi import Header, HTTPException

from marketplace.identity.principal import Principal, get_access_policy


def current_principal(x_principal_id: str | None = Header(default=None)) -> Principal:
    """The caller, identified by the ``X-Principal-Id`` header."""
    if not x_principal_id or not x_principal_id.strip():
        raise HTTPException(status_code=401, detail="X-Principal-Id header is required")
    return get_access_policy().principal(x_principal_id.strip())


def current_admin(x_principal_id: str | None = Header(default=None)) -> Principal:
    principal = current_principal(x_principal_id)
    get_access_policy().require_admin(principal, "use the administration API")
    return principal
