"""DeFi API endpoints"""
from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, HTTPException

from app.schemas.defi import OptimizeYieldRequest, SimulateDepositRequest
from app.services.circle_client import CircleClient, get_circle_client
from app.services.defi import (
    DEFAULT_GAS_FEE,
    FARMING_OPPORTUNITIES,
    GAS_STRATEGIES,
    LIQUIDITY_DATA,
    SUPPORTED_CHAINS,
    DeFiError,
    gas_recommendations,
    list_protocols,
    optimize_yield,
    simulate_deposit,
    yields_by_chain,
)

logger = structlog.get_logger()

router = APIRouter()


def _now() -> str:
    return datetime.utcnow().isoformat()


@router.get("/protocols")
async def get_protocols():
    """All DeFi protocols with their average APY"""
    protocols = list_protocols()
    return {
        "success": True,
        "protocols": protocols,
        "totalProtocols": len(protocols),
        "supportedChains": SUPPORTED_CHAINS,
        "timestamp": _now(),
    }


@router.post("/optimize-yield")
async def optimize_yield_endpoint(
    request: OptimizeYieldRequest,
    circle: CircleClient = Depends(get_circle_client),
):
    """Rank protocols for an amount, chain and risk tolerance"""
    result = optimize_yield(request.amount, request.chain, request.risk_tolerance)
    gas_prices = await circle.get_gas_prices()

    return {
        "success": True,
        "recommendations": result["recommendations"],
        "analysis": {
            "amount": request.amount,
            "chain": request.chain,
            "riskTolerance": request.risk_tolerance,
            "gasFee": gas_prices.get(request.chain, DEFAULT_GAS_FEE),
            "totalProtocols": result["suitable"],
            "suitableProtocols": result["suitable"],
        },
        "timestamp": _now(),
    }


@router.post("/simulate-deposit")
async def simulate_deposit_endpoint(
    request: SimulateDepositRequest,
    circle: CircleClient = Depends(get_circle_client),
):
    """Project returns for a deposit and run it through a simulated CCTP hook"""
    try:
        simulation = await simulate_deposit(
            circle,
            request.protocol,
            request.chain,
            request.amount,
            request.auto_compound,
        )
    except DeFiError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Simulated DeFi deposit", protocol=request.protocol, chain=request.chain, amount=request.amount)
    return {
        "success": True,
        "simulation": simulation,
        "message": "DeFi deposit simulation completed with CCTP V2 hooks",
    }


@router.get("/liquidity/{chain}")
async def get_liquidity(chain: str):
    """DEX liquidity snapshot for a chain"""
    data = LIQUIDITY_DATA.get(chain)
    if not data:
        raise HTTPException(status_code=400, detail="Chain not supported")
    return {"success": True, "chain": chain, "data": data, "timestamp": _now()}


@router.get("/farming/{chain}")
async def get_farming_opportunities(chain: str):
    """Yield farming pools on a chain"""
    opportunities = FARMING_OPPORTUNITIES.get(chain, [])
    return {
        "success": True,
        "chain": chain,
        "opportunities": opportunities,
        "totalOpportunities": len(opportunities),
        "timestamp": _now(),
    }


@router.get("/gas-optimization/{chain}")
async def get_gas_optimization(
    chain: str,
    circle: CircleClient = Depends(get_circle_client),
):
    """Gas-saving strategies for a chain"""
    gas_prices = await circle.get_gas_prices()
    return {
        "success": True,
        "chain": chain,
        "currentGasPrice": gas_prices.get(chain, 0),
        "strategies": GAS_STRATEGIES,
        "recommendations": gas_recommendations(),
        "timestamp": _now(),
    }


@router.get("/yields")
async def get_yields():
    """APY per protocol on every supported chain"""
    return {"success": True, "yields": yields_by_chain(), "timestamp": _now()}


@router.get("/gas-prices")
async def get_gas_prices(circle: CircleClient = Depends(get_circle_client)):
    """Current gas prices per chain"""
    return {"success": True, "gasPrices": await circle.get_gas_prices(), "timestamp": _now()}
