"""Transfer persistence with a SQL backend and an in-memory fallback.

The application picks one backend at startup: when the database accepted a
connection, every request gets a ``SqlTransferStore`` bound to its own
session; otherwise all requests share one ``InMemoryTransferStore``. Both
expose the same operations so route handlers never branch on the backend.

The in-memory store is not guarded against concurrent writers. Two requests
updating the same transfer race and the last write wins.
"""
import itertools
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from fastapi import Depends, Request
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database import get_db
from app.models.transfer import Transfer, TransferIntent, TransferStatus

logger = structlog.get_logger()

HISTORY_LIMIT = 50

# Columns a caller may set through create() / update()
WRITABLE_FIELDS = {
    "transfer_id",
    "sender",
    "recipient",
    "amount",
    "source_chain",
    "destination_chain",
    "intent",
    "status",
    "estimated_fees",
    "suggested_actions",
    "tx_hash",
    "destination_tx_hash",
    "cctp_transfer_id",
    "error",
    "email",
    "note",
    "completed_at",
}


@dataclass
class TransferSummary:
    """Aggregate figures over all stored transfers."""
    total_transfers: int = 0
    total_volume: float = 0.0
    total_fees: float = 0.0
    by_destination_chain: Dict[str, int] = field(default_factory=dict)
    by_intent: Dict[str, int] = field(default_factory=dict)


def _normalize(data: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(data) - WRITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown transfer fields: {', '.join(sorted(unknown))}")

    values = dict(data)
    for key in ("sender", "recipient"):
        if values.get(key):
            values[key] = values[key].lower()
    for key in ("intent", "status"):
        if isinstance(values.get(key), (TransferIntent, TransferStatus)):
            values[key] = values[key].value
    return values


def _new_transfer(data: Dict[str, Any]) -> Transfer:
    now = datetime.utcnow()
    values = {
        "intent": TransferIntent.STANDARD.value,
        "status": TransferStatus.PENDING.value,
        "estimated_fees": 0.001,
        "suggested_actions": [],
        "created_at": now,
        "updated_at": now,
    }
    values.update(_normalize(data))
    return Transfer(**values)


class TransferStore:
    """Operations shared by both storage backends."""

    backend = "unknown"

    async def create(self, data: Dict[str, Any]) -> Transfer:
        raise NotImplementedError

    async def find_by_transfer_id(self, transfer_id: str) -> Optional[Transfer]:
        raise NotImplementedError

    async def find_by_cctp_id(self, cctp_transfer_id: str) -> Optional[Transfer]:
        raise NotImplementedError

    async def find_by_address(self, address: str, limit: int = HISTORY_LIMIT) -> List[Transfer]:
        raise NotImplementedError

    async def count(self) -> int:
        raise NotImplementedError

    async def summarize(self) -> TransferSummary:
        raise NotImplementedError

    async def recent(self, limit: int) -> List[Transfer]:
        raise NotImplementedError

    async def _save(self, transfer: Transfer) -> None:
        raise NotImplementedError

    async def _apply(self, transfer: Optional[Transfer], changes: Dict[str, Any]) -> Optional[Transfer]:
        if transfer is None:
            return None
        for key, value in _normalize(changes).items():
            setattr(transfer, key, value)
        transfer.updated_at = datetime.utcnow()
        await self._save(transfer)
        return transfer

    async def update(self, transfer_id: str, **changes: Any) -> Optional[Transfer]:
        """Set the given fields on a transfer and return it, or None if missing."""
        return await self._apply(await self.find_by_transfer_id(transfer_id), changes)

    async def update_by_cctp_id(self, cctp_transfer_id: str, **changes: Any) -> Optional[Transfer]:
        return await self._apply(await self.find_by_cctp_id(cctp_transfer_id), changes)


class SqlTransferStore(TransferStore):
    """Transfer storage on an SQLAlchemy async session."""

    backend = "database"

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: Dict[str, Any]) -> Transfer:
        transfer = _new_transfer(data)
        self.db.add(transfer)
        await self.db.flush()
        return transfer

    async def _save(self, transfer: Transfer) -> None:
        await self.db.flush()

    async def find_by_transfer_id(self, transfer_id: str) -> Optional[Transfer]:
        result = await self.db.execute(
            select(Transfer).where(Transfer.transfer_id == transfer_id)
        )
        return result.scalar_one_or_none()

    async def find_by_cctp_id(self, cctp_transfer_id: str) -> Optional[Transfer]:
        result = await self.db.execute(
            select(Transfer).where(Transfer.cctp_transfer_id == cctp_transfer_id)
        )
        return result.scalars().first()

    async def find_by_address(self, address: str, limit: int = HISTORY_LIMIT) -> List[Transfer]:
        address = address.lower()
        result = await self.db.execute(
            select(Transfer)
            .where(or_(Transfer.sender == address, Transfer.recipient == address))
            .order_by(Transfer.created_at.desc(), Transfer.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Transfer))
        return result.scalar() or 0

    async def summarize(self) -> TransferSummary:
        totals = await self.db.execute(
            select(
                func.count(),
                func.coalesce(func.sum(Transfer.amount), 0),
                func.coalesce(func.sum(Transfer.estimated_fees), 0),
            ).select_from(Transfer)
        )
        total_transfers, total_volume, total_fees = totals.one()

        by_chain = await self.db.execute(
            select(Transfer.destination_chain, func.count()).group_by(Transfer.destination_chain)
        )
        by_intent = await self.db.execute(
            select(Transfer.intent, func.count()).group_by(Transfer.intent)
        )

        return TransferSummary(
            total_transfers=total_transfers or 0,
            total_volume=float(total_volume or 0),
            total_fees=float(total_fees or 0),
            by_destination_chain={chain: count for chain, count in by_chain.all()},
            by_intent={intent: count for intent, count in by_intent.all()},
        )

    async def recent(self, limit: int) -> List[Transfer]:
        result = await self.db.execute(
            select(Transfer).order_by(Transfer.created_at.desc(), Transfer.id.desc()).limit(limit)
        )
        return list(result.scalars().all())


class InMemoryTransferStore(TransferStore):
    """Process-local transfer storage used when the database is unreachable."""

    backend = "memory"

    def __init__(self):
        self._transfers: Dict[str, Transfer] = {}
        self._sequence = itertools.count(1)

    async def create(self, data: Dict[str, Any]) -> Transfer:
        transfer = _new_transfer(data)
        transfer.id = next(self._sequence)
        self._transfers[transfer.transfer_id] = transfer
        return transfer

    async def _save(self, transfer: Transfer) -> None:
        self._transfers[transfer.transfer_id] = transfer

    async def find_by_transfer_id(self, transfer_id: str) -> Optional[Transfer]:
        return self._transfers.get(transfer_id)

    async def find_by_cctp_id(self, cctp_transfer_id: str) -> Optional[Transfer]:
        for transfer in self._transfers.values():
            if transfer.cctp_transfer_id == cctp_transfer_id:
                return transfer
        return None

    def _newest_first(self, transfers) -> List[Transfer]:
        return sorted(transfers, key=lambda t: (t.created_at, t.id), reverse=True)

    async def find_by_address(self, address: str, limit: int = HISTORY_LIMIT) -> List[Transfer]:
        address = address.lower()
        matches = [
            t for t in self._transfers.values()
            if t.sender == address or t.recipient == address
        ]
        return self._newest_first(matches)[:limit]

    async def count(self) -> int:
        return len(self._transfers)

    async def summarize(self) -> TransferSummary:
        summary = TransferSummary()
        for transfer in self._transfers.values():
            summary.total_transfers += 1
            summary.total_volume += transfer.amount
            summary.total_fees += transfer.estimated_fees or 0
            chain = transfer.destination_chain
            summary.by_destination_chain[chain] = summary.by_destination_chain.get(chain, 0) + 1
            summary.by_intent[transfer.intent] = summary.by_intent.get(transfer.intent, 0) + 1
        return summary

    async def recent(self, limit: int) -> List[Transfer]:
        return self._newest_first(self._transfers.values())[:limit]

    def clear(self) -> None:
        self._transfers.clear()


_memory_store = InMemoryTransferStore()


def get_memory_store() -> InMemoryTransferStore:
    """Get the process-wide in-memory store"""
    return _memory_store


async def get_transfer_store(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> TransferStore:
    """
    Dependency returning the storage backend chosen at startup.

    The session from get_db is only used when the database connected; an
    unused session never opens a connection.
    """
    if not getattr(request.app.state, "database_connected", False):
        return _memory_store
    return SqlTransferStore(db)
