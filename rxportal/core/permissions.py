from dataclasses import dataclass
from typing import List, Dict, Optional
from fastapi import Request
from rxportal.core.exceptions import AuthenticationError, AuthorizationError
from rxportal.core.security import verify_token
from rxportal.domain.identity.models import UserRole


class Permissions:
    """Permission constants for the prescription manager"""

    PRESCRIPTIONS_CREATE = "prescriptions:create"
    PRESCRIPTIONS_READ_OWN = "prescriptions:read:own"
    PRESCRIPTIONS_UPDATE_OWN = "prescriptions:update:own"
    PRESCRIPTIONS_EXPORT = "prescriptions:export"

    PATIENTS_READ = "patients:read"
    PROFILE_READ_OWN = "profile:read:own"


ROLE_PERMISSIONS: Dict[UserRole, List[str]] = {
    UserRole.DOCTOR: [
        Permissions.PRESCRIPTIONS_CREATE,
        Permissions.PRESCRIPTIONS_READ_OWN,
        Permissions.PRESCRIPTIONS_UPDATE_OWN,
        Permissions.PRESCRIPTIONS_EXPORT,
        Permissions.PATIENTS_READ,
        Permissions.PROFILE_READ_OWN,
    ],
    UserRole.PATIENT: [
        Permissions.PRESCRIPTIONS_READ_OWN,
        Permissions.PRESCRIPTIONS_EXPORT,
        Permissions.PROFILE_READ_OWN,
    ],
}


@dataclass(frozen=True)
class CallerContext:
    """Identity and role of the caller, trusted as supplied by the token."""
    identity_id: str
    role: UserRole

    @property
    def permissions(self) -> List[str]:
        return ROLE_PERMISSIONS.get(self.role, [])


def get_optional_identity(request: Request) -> Optional[CallerContext]:
    """Extract the caller from the bearer token, or None when no token was sent"""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None

    token = auth_header.split(" ", 1)[1]
    payload = verify_token(token, "access")
    if not payload or "sub" not in payload:
        raise AuthenticationError("Invalid or expired token")

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise AuthenticationError("Invalid or expired token")

    return CallerContext(identity_id=payload["sub"], role=role)


def get_current_identity(request: Request) -> CallerContext:
    """Extract and validate the caller from the request"""
    identity = get_optional_identity(request)
    if identity is None:
        raise AuthenticationError("Authentication required")
    return identity


def require_permissions(required_permissions: List[str]):
    """Dependency function to check permissions"""
    def permission_checker(request: Request) -> CallerContext:
        identity = get_current_identity(request)

        # Check if user has any of the required permissions
        has_access = any(
            perm in identity.permissions
            for perm in required_permissions
        )

        if not has_access:
            raise AuthorizationError(
                "Insufficient permissions",
                details={"required_permissions": required_permissions}
            )

        return identity

    return permission_checker
