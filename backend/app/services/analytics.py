"""Remittance analytics: dashboard figures and in-process transfer counters"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from app.models.transfer import Transfer
from app.services.transfer_store import TransferSummary

TRADITIONAL_FEE_RATE = 0.065  # Western Union / MoneyGram average
BORDERHOP_FEE_RATE = 0.001
RECENT_ACTIVITY_LIMIT = 7
REALTIME_DAYS = 3
AVERAGE_PROCESSING_TIME = "2.5 minutes"
HIGH_VOLUME_THRESHOLD = 1000

TRACKED_CHAINS = ("ethereum", "base", "arbitrum")
TRACKED_INTENTS = ("standard", "maximize_yield", "minimize_fees")

RECOMMENDATIONS = [
    {
        "type": "chain_optimization",
        "title": "Optimize for Base Chain",
        "description": "Base shows highest DeFi yields (5.2% APY)",
        "impact": "high",
        "action": "Route more transfers to Base for yield optimization",
    },
    {
        "type": "fee_optimization",
        "title": "Use CCTP V2 Hooks",
        "description": "Implement post-transfer DeFi deposits",
        "impact": "medium",
        "action": "Enable auto-deposit hooks for yield maximization",
    },
    {
        "type": "user_experience",
        "title": "Intent-Based Routing",
        "description": "Users prefer yield maximization (60%)",
        "impact": "high",
        "action": "Promote yield optimization features",
    },
]

MARKET_OPPORTUNITIES = [
    {
        "region": "Latin America",
        "opportunity": "High remittance volume, low competition",
        "potential": "high",
        "strategy": "Focus on Base chain for low fees",
    },
    {
        "region": "Southeast Asia",
        "opportunity": "Growing DeFi adoption",
        "potential": "medium",
        "strategy": "Promote yield farming features",
    },
]


def format_usd(value: float) -> str:
    """Dollar string with thousands separators and up to three decimals"""
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return f"${text}"


def build_dashboard(summary: TransferSummary, recent: List[Transfer]) -> Dict[str, Any]:
    """
    Dashboard built from stored transfers.

    Fees saved compare what was actually charged against the traditional
    remittance rate on the same volume.
    """
    total_volume = summary.total_volume or 0
    traditional_fees = total_volume * TRADITIONAL_FEE_RATE
    fees_saved = traditional_fees - (summary.total_fees or 0)
    average = total_volume / summary.total_transfers if summary.total_transfers else 0

    if total_volume > 0:
        savings_percentage = f"{fees_saved / total_volume * 100:.2f}%"
    else:
        savings_percentage = "0%"

    return {
        "overview": {
            "totalTransfers": summary.total_transfers,
            "totalVolume": format_usd(total_volume),
            "totalFeesSaved": format_usd(fees_saved),
            "averageTransferSize": f"${average:.2f}",
            "savingsPercentage": savings_percentage,
        },
        "chainDistribution": dict(summary.by_destination_chain),
        "intentDistribution": dict(summary.by_intent),
        "recentActivity": [
            {
                "date": transfer.created_at.date().isoformat(),
                "transfers": 1,
                "volume": transfer.amount,
                "feesSaved": transfer.estimated_fees,
            }
            for transfer in recent
        ],
    }


@dataclass
class DailyStats:
    transfers: int = 0
    volume: float = 0.0
    fees_saved: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"transfers": self.transfers, "volume": self.volume, "feesSaved": self.fees_saved}


@dataclass
class TransferStatsTracker:
    """
    Running totals reported by clients through the update-stats endpoint.

    These counters live in process memory and are independent of the
    transfer store; they reset on restart.
    """
    total_transfers: int = 0
    total_volume: float = 0.0
    total_fees_saved: float = 0.0
    average_transfer_size: float = 0.0
    transfers_by_chain: Dict[str, int] = field(
        default_factory=lambda: {chain: 0 for chain in TRACKED_CHAINS}
    )
    transfers_by_intent: Dict[str, int] = field(
        default_factory=lambda: {intent: 0 for intent in TRACKED_INTENTS}
    )
    daily_stats: Dict[str, DailyStats] = field(default_factory=dict)

    def update(
        self,
        amount: float,
        destination_chain: str,
        intent: str,
        fees_saved: float,
        today: Optional[date] = None,
    ) -> None:
        """Count one transfer"""
        self.total_transfers += 1
        self.total_volume += amount
        self.total_fees_saved += fees_saved
        self.average_transfer_size = self.total_volume / self.total_transfers

        self.transfers_by_chain[destination_chain] = self.transfers_by_chain.get(destination_chain, 0) + 1
        self.transfers_by_intent[intent] = self.transfers_by_intent.get(intent, 0) + 1

        day = (today or datetime.utcnow().date()).isoformat()
        bucket = self.daily_stats.setdefault(day, DailyStats())
        bucket.transfers += 1
        bucket.volume += amount
        bucket.fees_saved += fees_saved

    def reset(self) -> None:
        fresh = TransferStatsTracker()
        self.__dict__.update(fresh.__dict__)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "totalTransfers": self.total_transfers,
            "totalVolume": self.total_volume,
            "totalFeesSaved": self.total_fees_saved,
            "averageTransferSize": self.average_transfer_size,
            "transfersByChain": dict(self.transfers_by_chain),
            "transfersByIntent": dict(self.transfers_by_intent),
            "dailyStats": {day: stats.to_dict() for day, stats in self.daily_stats.items()},
        }

    def _most_popular(self, counts: Dict[str, int], default: str) -> str:
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return ranked[0][0] if ranked else default

    def savings_comparison(self) -> Dict[str, Any]:
        traditional_fees = self.total_volume * TRADITIONAL_FEE_RATE
        borderhop_fees = self.total_volume * BORDERHOP_FEE_RATE
        total_savings = traditional_fees - borderhop_fees
        savings_percentage = total_savings / traditional_fees * 100 if traditional_fees else 0
        per_transfer = total_savings / self.total_transfers if self.total_transfers else 0

        return {
            "traditional": {
                "totalFees": traditional_fees,
                "percentage": TRADITIONAL_FEE_RATE * 100,
                "description": "Traditional remittance services (Western Union, MoneyGram)",
            },
            "borderhop": {
                "totalFees": borderhop_fees,
                "percentage": BORDERHOP_FEE_RATE * 100,
                "description": "BorderHop with Circle CCTP V2",
            },
            "savings": {
                "amount": total_savings,
                "percentage": savings_percentage,
                "description": "Total savings using BorderHop",
            },
            "analysis": {
                "transfers": self.total_transfers,
                "averageSavingsPerTransfer": per_transfer,
                "volume": self.total_volume,
            },
        }

    def performance(self) -> Dict[str, Any]:
        fees_paid = self.total_fees_saved * 0.1
        return {
            "transfers": {
                "total": self.total_transfers,
                "successful": self.total_transfers,
                "successRate": 100,
                "averageProcessingTime": AVERAGE_PROCESSING_TIME,
            },
            "volume": {
                "total": self.total_volume,
                "average": self.average_transfer_size,
                "largest": self.total_volume if self.total_volume > 0 else 0,
                "trend": "increasing",
            },
            "fees": {
                "totalPaid": fees_paid,
                "averagePerTransfer": fees_paid / self.total_transfers if self.total_transfers else 0,
                "savings": self.total_fees_saved,
            },
            "chains": {
                "mostPopular": self._most_popular(self.transfers_by_chain, "ethereum"),
                "distribution": dict(self.transfers_by_chain),
            },
        }

    def insights(self) -> Dict[str, Any]:
        top_chains = sorted(self.transfers_by_chain.items(), key=lambda item: item[1], reverse=True)[:3]
        return {
            "topPerformingChains": [
                {"chain": chain, "transfers": count} for chain, count in top_chains
            ],
            "userBehavior": {
                "mostPopularIntent": self._most_popular(self.transfers_by_intent, "standard"),
                "averageTransferSize": self.average_transfer_size,
                "volumeTrend": "high" if self.total_volume > HIGH_VOLUME_THRESHOLD else "low",
            },
            "recommendations": RECOMMENDATIONS,
            "marketOpportunities": MARKET_OPPORTUNITIES,
        }

    def realtime(self, today: Optional[date] = None) -> Dict[str, Any]:
        day = (today or datetime.utcnow().date()).isoformat()
        latest_days = sorted(self.daily_stats)[-REALTIME_DAYS:]
        todays = self.daily_stats.get(day, DailyStats())
        return {
            "currentStats": self.snapshot(),
            "recentActivity": [
                {"date": d, **self.daily_stats[d].to_dict()} for d in reversed(latest_days)
            ],
            "liveMetrics": {
                "transfersToday": todays.transfers,
                "volumeToday": todays.volume,
                "averageProcessingTime": AVERAGE_PROCESSING_TIME,
                "systemStatus": "healthy",
            },
        }


# Global tracker
stats_tracker = TransferStatsTracker()
