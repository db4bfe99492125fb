"""Analytics request schemas"""
from pydantic import Field

from app.models.transfer import TransferIntent
from app.schemas.transfer import CamelModel


class UpdateStatsRequest(CamelModel):
    amount: float = Field(ge=0)
    source_chain: str
    destination_chain: str
    intent: TransferIntent = TransferIntent.STANDARD
    fees_saved: float = 0.0
