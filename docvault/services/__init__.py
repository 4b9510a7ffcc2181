"""
Service layer: business operations on top of the repositories.
"""

from docvault.services.auth_service import AuthService
from docvault.services.bootstrap_service import BootstrapService
from docvault.services.user_service import UserService

__all__ = [
    "AuthService",
    "BootstrapService",
    "UserService",
]
