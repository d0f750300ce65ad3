"""Mapping of user-info payloads onto ``ProviderProfile``.

Two shapes are understood:

- the back-office API ``/api/auth/me`` response, which already carries
  ``ROLE_*`` / ``CAP_*`` authorities and account details, and
- the standard OIDC user-info response, where Keycloak realm roles become
  ``ROLE_*`` authorities and client roles become ``CAP_*`` authorities.
"""

from typing import Any

from backoffice.domain.value import ProviderProfile


def profile_from_backend(payload: dict[str, Any]) -> ProviderProfile:
    """Build a profile from the back-office API user-info response.

    The account id is preferred as subject id, then the OIDC subject, then
    the username.

    Raises:
        ValueError: If the payload has no usable identifier
    """
    subject = payload.get("accountId") or payload.get("sub") or payload.get("username")
    if subject is None:
        raise ValueError("Back-office profile has no identifier")

    return ProviderProfile(
        id=subject,
        username=payload.get("username"),
        email=payload.get("email"),
        email_verified=bool(payload.get("emailVerified", False)),
        first_name=payload.get("firstName"),
        last_name=payload.get("lastName"),
        phone_number=payload.get("phoneNumber"),
        company_name=payload.get("companyName"),
        country=payload.get("country"),
        authenticated=bool(payload.get("authenticated", True)),
        authorities=list(payload.get("authorities") or []),
    )


def profile_from_userinfo(payload: dict[str, Any], client_id: str) -> ProviderProfile:
    """Build a profile from an OIDC user-info response.

    Args:
        payload: User-info claims
        client_id: OAuth client id, selects the client roles in ``resource_access``

    Raises:
        ValueError: If the payload has no ``sub`` claim
    """
    subject = payload.get("sub")
    if not subject:
        raise ValueError("User-info response has no 'sub' claim")

    realm_roles = (payload.get("realm_access") or {}).get("roles") or []
    client_roles = (
        ((payload.get("resource_access") or {}).get(client_id) or {}).get("roles")
        or []
    )
    address = payload.get("address") or {}

    return ProviderProfile(
        id=subject,
        username=payload.get("preferred_username"),
        email=payload.get("email"),
        email_verified=bool(payload.get("email_verified", False)),
        first_name=payload.get("given_name"),
        last_name=payload.get("family_name"),
        phone_number=payload.get("phone_number"),
        country=address.get("country"),
        authenticated=True,
        authorities=_authorities(realm_roles, client_roles),
    )


def _authorities(realm_roles: list[str], client_roles: list[str]) -> list[str]:
    """Merge roles into a de-duplicated, order-preserving authority list."""
    authorities = [f"ROLE_{role.upper()}" for role in realm_roles]
    authorities += [f"CAP_{role.upper()}" for role in client_roles]
    return list(dict.fromkeys(authorities))
