from bankauth.models.audit_log import AuditLog
from bankauth.models.user import User

__all__ = [
    "AuditLog",
    "User",
]
