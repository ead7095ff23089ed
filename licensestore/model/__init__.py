# ------ licensestore/model/__init__.py ------

from .user import User, RefreshToken
from .order import StoreOrder

__all__ = [
    "User",
    "RefreshToken",
    "StoreOrder",
]
