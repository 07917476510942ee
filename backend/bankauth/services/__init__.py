from bankauth.services.authorization import AuthorizationGate
from bankauth.services.factory import create_authorization_gate

__all__ = [
    "AuthorizationGate",
    "create_authorization_gate",
]
