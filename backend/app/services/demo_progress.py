"""Fabricated status progression for demo transfers.

Nothing here observes a chain. A pending transfer picks up a CCTP id, then a
burn hash, then completes, purely based on how long ago it was created.
"""
import secrets
from datetime import datetime
from typing import Any, Dict, Optional

from app.config import get_settings
from app.models.transfer import Transfer, TransferStatus
from app.services.routing import random_suffix


def fake_tx_hash() -> str:
    return "0x" + secrets.token_hex(32)


def fake_cctp_id() -> str:
    return f"cctp_{random_suffix()}"


def advance_demo_transfer(transfer: Transfer, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Return the field changes the next demo step applies to a transfer.

    At most one step is taken per call and only pending transfers move.
    An empty dict means nothing changes.
    """
    if transfer.status != TransferStatus.PENDING.value:
        return {}

    settings = get_settings()
    now = now or datetime.utcnow()
    age = (now - transfer.created_at).total_seconds()

    if age > settings.demo_complete_after:
        return {
            "status": TransferStatus.COMPLETED.value,
            "destination_tx_hash": fake_tx_hash(),
            "completed_at": now,
        }
    if age > settings.demo_burn_after and not transfer.tx_hash:
        return {"tx_hash": fake_tx_hash()}
    if age > settings.demo_cctp_after and not transfer.cctp_transfer_id:
        return {"cctp_transfer_id": fake_cctp_id()}
    return {}
