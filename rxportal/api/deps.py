from rxportal.core.permissions import (
    CallerContext,
    get_optional_identity,
    require_permissions,
)
from rxportal.infrastructure.database import get_db

__all__ = [
    "CallerContext",
    "get_optional_identity",
    "get_db",
    "require_permissions",
]
