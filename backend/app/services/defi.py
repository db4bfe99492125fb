"""DeFi protocol tables and yield calculations"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.services.circle_client import CircleClient

SUPPORTED_CHAINS = ["ethereum", "base", "arbitrum"]

MAX_RECOMMENDATIONS = 5
DEFAULT_GAS_FEE = 0.01

# Flat costs applied to a simulated deposit, in USDC
DEPOSIT_FEES = {"cctp": 0.001, "gas": 0.005, "protocol": 0.002}

RISK_LEVELS = {
    "low": {"low"},
    "medium": {"low", "medium"},
}


@dataclass(frozen=True)
class DeFiProtocol:
    """Lending/liquidity protocol with per-chain APY"""
    name: str
    apy: Dict[str, float]
    min_deposit: float
    risk: str


DEFI_PROTOCOLS: Dict[str, DeFiProtocol] = {
    "aave": DeFiProtocol(
        name="Aave",
        apy={"ethereum": 0.045, "base": 0.052, "arbitrum": 0.038},
        min_deposit=100,
        risk="low",
    ),
    "compound": DeFiProtocol(
        name="Compound",
        apy={"ethereum": 0.042, "base": 0.048, "arbitrum": 0.035},
        min_deposit=50,
        risk="low",
    ),
    "curve": DeFiProtocol(
        name="Curve Finance",
        apy={"ethereum": 0.038, "base": 0.045, "arbitrum": 0.032},
        min_deposit=200,
        risk="medium",
    ),
    "uniswap": DeFiProtocol(
        name="Uniswap V3",
        apy={"ethereum": 0.055, "base": 0.062, "arbitrum": 0.048},
        min_deposit=500,
        risk="high",
    ),
}

LIQUIDITY_DATA: Dict[str, Dict[str, Any]] = {
    "ethereum": {
        "totalLiquidity": 2500000,
        "usdcLiquidity": 1000000,
        "volume24h": 500000,
        "topPairs": [
            {"pair": "USDC/ETH", "liquidity": 500000, "volume24h": 200000},
            {"pair": "USDC/USDT", "liquidity": 300000, "volume24h": 150000},
            {"pair": "USDC/DAI", "liquidity": 200000, "volume24h": 100000},
        ],
    },
    "base": {
        "totalLiquidity": 1200000,
        "usdcLiquidity": 500000,
        "volume24h": 200000,
        "topPairs": [
            {"pair": "USDC/ETH", "liquidity": 250000, "volume24h": 100000},
            {"pair": "USDC/USDbC", "liquidity": 150000, "volume24h": 60000},
            {"pair": "USDC/DAI", "liquidity": 100000, "volume24h": 40000},
        ],
    },
    "arbitrum": {
        "totalLiquidity": 1800000,
        "usdcLiquidity": 750000,
        "volume24h": 300000,
        "topPairs": [
            {"pair": "USDC/ETH", "liquidity": 400000, "volume24h": 150000},
            {"pair": "USDC/USDT", "liquidity": 250000, "volume24h": 100000},
            {"pair": "USDC/ARB", "liquidity": 100000, "volume24h": 50000},
        ],
    },
}

FARMING_OPPORTUNITIES: Dict[str, List[Dict[str, Any]]] = {
    "ethereum": [
        {
            "protocol": "Aave",
            "pool": "USDC Lending Pool",
            "apy": 0.045,
            "tvl": 500000,
            "risk": "low",
            "rewards": ["AAVE", "stkAAVE"],
        },
        {
            "protocol": "Compound",
            "pool": "USDC Market",
            "apy": 0.042,
            "tvl": 400000,
            "risk": "low",
            "rewards": ["COMP"],
        },
    ],
    "base": [
        {
            "protocol": "Aave",
            "pool": "USDC Lending Pool",
            "apy": 0.052,
            "tvl": 300000,
            "risk": "low",
            "rewards": ["AAVE"],
        },
    ],
    "arbitrum": [
        {
            "protocol": "Aave",
            "pool": "USDC Lending Pool",
            "apy": 0.038,
            "tvl": 350000,
            "risk": "low",
            "rewards": ["AAVE"],
        },
    ],
}

GAS_STRATEGIES: List[Dict[str, Any]] = [
    {
        "name": "Batch Transactions",
        "description": "Combine multiple operations into a single transaction",
        "gasSavings": 0.3,
        "complexity": "medium",
    },
    {
        "name": "Use CCTP V2 Fast Transfers",
        "description": "Leverage Circle's optimized cross-chain transfers",
        "gasSavings": 0.4,
        "complexity": "low",
    },
    {
        "name": "Choose Optimal Chain",
        "description": "Route to chains with lower gas fees",
        "gasSavings": 0.6,
        "complexity": "low",
    },
]


def list_protocols() -> List[Dict[str, Any]]:
    """Protocols with their average APY across chains"""
    return [
        {
            "id": protocol_id,
            "name": protocol.name,
            "apy": dict(protocol.apy),
            "minDeposit": protocol.min_deposit,
            "risk": protocol.risk,
            "averageAPY": sum(protocol.apy.values()) / len(protocol.apy),
        }
        for protocol_id, protocol in DEFI_PROTOCOLS.items()
    ]


def yields_by_chain() -> Dict[str, Dict[str, float]]:
    """APY per chain, per protocol"""
    return {
        chain: {
            protocol_id: protocol.apy[chain]
            for protocol_id, protocol in DEFI_PROTOCOLS.items()
            if chain in protocol.apy
        }
        for chain in SUPPORTED_CHAINS
    }


def suitable_protocols(amount: float, chain: str, risk_tolerance: str) -> List[Dict[str, Any]]:
    """
    Protocols that fit a risk tolerance and exist on a chain, best return first.

    ``low`` admits only low-risk protocols, ``medium`` admits low and medium,
    and any other tolerance admits everything.
    """
    allowed = RISK_LEVELS.get(risk_tolerance)
    matches = []
    for protocol_id, protocol in DEFI_PROTOCOLS.items():
        if allowed is not None and protocol.risk not in allowed:
            continue
        apy = protocol.apy.get(chain)
        if not apy:
            continue
        matches.append({
            "id": protocol_id,
            "name": protocol.name,
            "apy": apy,
            "minDeposit": protocol.min_deposit,
            "risk": protocol.risk,
            "estimatedYearlyReturn": amount * apy,
        })
    matches.sort(key=lambda p: p["estimatedYearlyReturn"], reverse=True)
    return matches


def recommend(amount: float, suitable: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Suitable protocols the amount can enter, capped at five"""
    return [p for p in suitable if amount >= p["minDeposit"]][:MAX_RECOMMENDATIONS]


def deposit_returns(amount: float, apy: float) -> Dict[str, Dict[str, float]]:
    """Gross and net returns for a deposit over a day, month and year"""
    yearly = amount * apy
    monthly = yearly / 12
    daily = yearly / 365
    total_fees = sum(DEPOSIT_FEES.values())
    return {
        "returns": {"daily": daily, "monthly": monthly, "yearly": yearly},
        "fees": {**DEPOSIT_FEES, "total": total_fees},
        "netReturns": {
            "daily": daily - total_fees / 365,
            "monthly": monthly - total_fees / 12,
            "yearly": yearly - total_fees,
        },
    }


def get_protocol(protocol_id: str) -> Optional[DeFiProtocol]:
    return DEFI_PROTOCOLS.get(protocol_id)


def gas_recommendations() -> List[Dict[str, Any]]:
    """Low-complexity strategies, biggest savings first"""
    low = [s for s in GAS_STRATEGIES if s["complexity"] == "low"]
    return sorted(low, key=lambda s: s["gasSavings"], reverse=True)


class DeFiError(ValueError):
    """Raised for a deposit the protocol tables cannot serve"""


def optimize_yield(amount: float, chain: str, risk_tolerance: str) -> Dict[str, Any]:
    """Recommendations plus the count of protocols that passed the risk filter"""
    suitable = suitable_protocols(amount, chain, risk_tolerance)
    return {"recommendations": recommend(amount, suitable), "suitable": len(suitable)}


async def simulate_deposit(
    circle: CircleClient,
    protocol_id: str,
    chain: str,
    amount: float,
    auto_compound: bool = False,
) -> Dict[str, Any]:
    """
    Project returns for a deposit and run it through a simulated hook.

    Raises DeFiError for an unknown protocol or one without a pool on the
    chain.
    """
    protocol = get_protocol(protocol_id)
    if not protocol:
        raise DeFiError("Protocol not found")

    apy = protocol.apy.get(chain)
    if not apy:
        raise DeFiError("Protocol not supported on this chain")

    hook = await circle.execute_post_transfer_hook(
        f"SIM_{int(datetime.utcnow().timestamp() * 1000)}",
        {
            "type": "defi_deposit",
            "protocol": protocol_id,
            "chain": chain,
            "amount": amount,
            "parameters": {
                "autoCompound": auto_compound,
                "riskLevel": protocol.risk,
                "estimatedAPY": apy,
            },
        },
    )

    return {
        "protocol": protocol.name,
        "chain": chain,
        "amount": amount,
        "apy": apy,
        **deposit_returns(amount, apy),
        "hook": {
            "success": hook.success,
            "hookId": hook.hook_id,
            "result": hook.result,
            "timestamp": hook.timestamp,
        },
        "timestamp": datetime.utcnow().isoformat(),
    }
