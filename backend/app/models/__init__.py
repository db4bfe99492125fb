"""Database models"""
from app.models.database import Base, get_db
from app.models.transfer import Transfer, TransferStatus, TransferIntent, ZERO_ADDRESS

__all__ = [
    "Base",
    "get_db",
    "Transfer",
    "TransferStatus",
    "TransferIntent",
    "ZERO_ADDRESS",
]
