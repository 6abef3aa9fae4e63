from plantpal.models.database import Base, get_db, engine, SessionLocal
from plantpal.models.user import User
from plantpal.models.device import Device

__all__ = [
    "Base", "get_db", "engine", "SessionLocal",
    "User", "Device"
]
