# Security utilities package

from .passwords import hash_password, verify_password
from .tokens import TokenIdentity, TokenService

__all__ = [
    "hash_password",
    "verify_password",
    "TokenIdentity",
    "TokenService",
]
