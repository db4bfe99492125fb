"""Remittance transfer schemas"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.transfer import TransferIntent, TransferStatus


class CamelModel(BaseModel):
    """Base model that speaks camelCase JSON and accepts snake_case too"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RouteRequest(CamelModel):
    amount: float = Field(gt=0)
    source_chain: str = Field(min_length=1)
    destination_chain: str = Field(min_length=1)
    intent: TransferIntent = TransferIntent.STANDARD


class RouteDataResponse(CamelModel):
    optimal_chain: str
    estimated_fees: float
    suggested_actions: List[str]
    gas_data: Dict[str, float]
    yield_data: Dict[str, float]
    liquidity_data: Dict[str, Any]


class RouteResponse(CamelModel):
    success: bool = True
    data: RouteDataResponse


class TransferRequest(CamelModel):
    """Body of POST /transfer"""
    amount: float = Field(gt=0)
    source_chain: str = Field(min_length=1)
    destination_chain: str = Field(min_length=1)
    recipient_address: str = Field(min_length=1)
    sender_address: Optional[str] = None
    intent: TransferIntent = TransferIntent.STANDARD
    email: Optional[str] = None
    note: Optional[str] = None


class TransferCreatedResponse(CamelModel):
    success: bool = True
    transfer_id: str
    message: str
    status: TransferStatus
    estimated_fees: float
    route: Optional[RouteDataResponse] = None
    cctp_transfer_id: Optional[str] = None
    tx_hash: Optional[str] = None
    demo: Optional[bool] = None


class TransferRecord(CamelModel):
    """Full stored transfer"""
    transfer_id: str
    sender: str
    recipient: str
    amount: float
    source_chain: str
    destination_chain: str
    intent: TransferIntent
    status: TransferStatus
    estimated_fees: float
    suggested_actions: List[str] = []
    tx_hash: Optional[str] = None
    destination_tx_hash: Optional[str] = None
    cctp_transfer_id: Optional[str] = None
    error: Optional[str] = None
    email: Optional[str] = None
    note: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class TransferStatusDetail(CamelModel):
    transfer_id: str
    status: TransferStatus
    burn_tx_hash: Optional[str] = None
    mint_tx_hash: Optional[str] = None
    completed_at: Optional[datetime] = None
    fees_paid: float
    circle_cctp: bool = Field(default=True, alias="circleCCTP")
    hooks_executed: bool


class TransferStatusResponse(CamelModel):
    success: bool = True
    transfer: TransferStatusDetail


class HistoryEntry(CamelModel):
    transfer_id: str
    amount: float
    source_chain: str
    destination_chain: str
    status: TransferStatus
    timestamp: datetime
    fees: float
    circle_cctp: bool = Field(default=True, alias="circleCCTP")
    hooks_executed: bool


class HistoryResponse(CamelModel):
    success: bool = True
    history: List[HistoryEntry]
    total: int


class ChainInfo(CamelModel):
    name: str
    id: str
    domain: int
    usdc: str
    rpc: str


class ChainsResponse(CamelModel):
    success: bool = True
    chains: List[ChainInfo]


class WebhookResponse(CamelModel):
    success: bool = True
    transfer: TransferRecord
