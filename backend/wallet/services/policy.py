from typing import Optional

from wallet.core.errors import Forbidden
from wallet.core.security import Claims
from wallet.services.store import Role


def is_allowed(
    claims: Claims,
    resource_owner_id: Optional[str] = None,
    required_role: Optional[Role] = None,
) -> bool:
    if claims.role == Role.ADMIN:
        return True
    if required_role == Role.ADMIN:
        return False
    if resource_owner_id is not None:
        return claims.subject_id == resource_owner_id
    return True


def authorize(
    claims: Claims,
    resource_owner_id: Optional[str] = None,
    required_role: Optional[Role] = None,
) -> None:
    """Single gate in front of every user-scoped or admin-only operation.

    A user-scoped resource is open to its owner and to admins; an admin-only
    operation is open to admins only. Denials never say whether the target
    exists, so callers must authorize before looking anything up.
    """
    if not is_allowed(claims, resource_owner_id, required_role):
        raise Forbidden()
