"""SQLAlchemy models for the HRM console tables."""

from .profile import Profile
from .product import Product
from .user_permission import UserPermission

__all__ = [
    "Profile",
    "Product",
    "UserPermission",
]
