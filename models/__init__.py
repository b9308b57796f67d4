from models.base import Base
from models.user import User
from models.password import Password
from models.session import Session
from models.verification import Verification

__all__ = [
    "Base",
    "User",
    "Password",
    "Session",
    "Verification",
]
