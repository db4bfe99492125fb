"""DeFi request schemas"""
from pydantic import Field

from app.schemas.transfer import CamelModel


class OptimizeYieldRequest(CamelModel):
    amount: float = Field(gt=0)
    chain: str = Field(min_length=1)
    risk_tolerance: str = Field(min_length=1)  # low, medium, high


class SimulateDepositRequest(CamelModel):
    protocol: str = Field(min_length=1)
    chain: str = Field(min_length=1)
    amount: float = Field(gt=0)
    auto_compound: bool = False
