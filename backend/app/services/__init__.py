"""BorderHop Backend Services"""
from .circle_client import CircleClient, get_circle_client, close_circle_client
from .routing import calculate_optimal_route, validate_chain_configuration, RouteData
from .transfer_store import (
    TransferStore,
    SqlTransferStore,
    InMemoryTransferStore,
    TransferSummary,
    get_transfer_store,
)

__all__ = [
    "CircleClient",
    "get_circle_client",
    "close_circle_client",
    # Routing
    "calculate_optimal_route",
    "validate_chain_configuration",
    "RouteData",
    # Storage
    "TransferStore",
    "SqlTransferStore",
    "InMemoryTransferStore",
    "TransferSummary",
    "get_transfer_store",
]
