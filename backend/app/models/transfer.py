"""Remittance transfer model"""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, JSON, Index

from app.models.database import Base


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class TransferStatus(str, enum.Enum):
    """Transfer status values. Handlers may set any of these at any time."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TransferIntent(str, enum.Enum):
    """What the sender wants the route optimized for."""
    STANDARD = "standard"
    MAXIMIZE_YIELD = "maximize_yield"
    MINIMIZE_FEES = "minimize_fees"


class Transfer(Base):
    """Cross-chain USDC remittance record"""
    __tablename__ = "transfers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transfer_id = Column(String(64), nullable=False, unique=True, index=True)
    sender = Column(String(128), nullable=False, index=True)
    recipient = Column(String(128), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    source_chain = Column(String(64), nullable=False)
    destination_chain = Column(String(64), nullable=False)
    intent = Column(String(20), nullable=False, default=TransferIntent.STANDARD.value)
    status = Column(String(20), nullable=False, default=TransferStatus.PENDING.value, index=True)
    estimated_fees = Column(Float, nullable=False, default=0.001)
    suggested_actions = Column(JSON, nullable=False, default=list)

    # Filled in as the transfer progresses
    tx_hash = Column(String(80), nullable=True)
    destination_tx_hash = Column(String(80), nullable=True)
    cctp_transfer_id = Column(String(128), nullable=True, index=True)
    error = Column(Text, nullable=True)

    email = Column(String(255), nullable=True)
    note = Column(Text, nullable=True)

    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_transfers_sender_created", "sender", "created_at"),
        Index("ix_transfers_recipient_created", "recipient", "created_at"),
        Index("ix_transfers_status_created", "status", "created_at"),
    )

    def __repr__(self):
        return f"<Transfer {self.transfer_id} ({self.amount} {self.source_chain}->{self.destination_chain}, {self.status})>"
