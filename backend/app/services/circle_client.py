"""Circle CCTP V2 HTTP API wrapper for BorderHop"""
import hashlib
import hmac
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from app.config import get_settings

logger = structlog.get_logger()
settings = get_settings()

# Static gas price snapshot (gwei-equivalent, per chain)
GAS_PRICES = {"ethereum": 25, "base": 0.005, "arbitrum": 0.008}


class WebhookError(ValueError):
    """Raised for a webhook body with missing or wrongly typed fields"""


@dataclass
class CCTPTransferResult:
    """Outcome of a burn request"""
    success: bool
    transfer_id: Optional[str] = None
    tx_hash: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None


@dataclass
class CCTPStatusResult:
    """Transfer status as reported by Circle"""
    success: bool
    status: Optional[str] = None
    burn_tx_hash: Optional[str] = None
    mint_tx_hash: Optional[str] = None
    completed_at: Optional[str] = None
    error: Optional[str] = None


class WebhookEvent(BaseModel):
    """Status update pushed by Circle"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    transfer_id: str = Field(min_length=1)
    status: str = Field(min_length=1)
    destination_tx_hash: Optional[str] = None
    error: Optional[str] = None


@dataclass
class HookExecutionResult:
    """Result of a post-transfer hook"""
    success: bool
    hook_id: str
    result: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())


def _error_message(error: httpx.HTTPError) -> str:
    """Pull Circle's error message out of a failed response if there is one"""
    if isinstance(error, httpx.HTTPStatusError):
        try:
            body = error.response.json()
        except ValueError:
            return str(error)
        if isinstance(body, dict):
            nested = body.get("error")
            if isinstance(nested, dict) and nested.get("message"):
                return nested["message"]
            if body.get("message"):
                return body["message"]
    return str(error)


class CircleClient:
    """Async client for the Circle CCTP V2 API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = settings.circle_api_key if api_key is None else api_key
        self.base_url = base_url or settings.circle_base_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Open the underlying HTTP client"""
        if self._client is None:
            options: Dict[str, Any] = {
                "base_url": self.base_url,
                "headers": {"Authorization": f"Bearer {self.api_key}"},
                "transport": self._transport,
            }
            if settings.circle_timeout is not None:
                options["timeout"] = settings.circle_timeout
            self._client = httpx.AsyncClient(**options)
            logger.info("Circle client ready", base_url=self.base_url)

    async def disconnect(self) -> None:
        """Close the HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Circle client closed")

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, raise if not connected"""
        if self._client is None:
            raise RuntimeError("Circle client not connected. Call connect() first.")
        return self._client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def initiate_transfer(
        self,
        amount: str,
        destination_address: str,
        destination_domain: int,
        source_domain: int,
        sender_address: str,
    ) -> CCTPTransferResult:
        """Burn USDC on the source domain for minting on the destination"""
        payload = {
            "amount": amount,
            "destinationAddress": destination_address,
            "destinationDomain": destination_domain,
            "sourceDomain": source_domain,
            "senderAddress": sender_address,
        }
        logger.info("Initiating CCTP transfer", **payload)

        try:
            response = await self.client.post("/transfers/burn", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            message = _error_message(e)
            logger.error("CCTP transfer failed", error=message)
            return CCTPTransferResult(success=False, error=message)

        data = response.json().get("data", {})
        logger.info("CCTP transfer initiated", transfer_id=data.get("transferId"))
        return CCTPTransferResult(
            success=True,
            transfer_id=data.get("transferId"),
            tx_hash=data.get("txHash"),
            message=data.get("message"),
        )

    async def get_transfer_status(self, cctp_transfer_id: str) -> CCTPStatusResult:
        """Fetch burn/mint status for a CCTP transfer"""
        try:
            response = await self.client.get(f"/transfers/{cctp_transfer_id}")
            response.raise_for_status()
        except httpx.HTTPError as e:
            message = _error_message(e)
            logger.error("Failed to get CCTP transfer status", cctp_transfer_id=cctp_transfer_id, error=message)
            return CCTPStatusResult(success=False, error=message)

        data = response.json().get("data", {})
        return CCTPStatusResult(
            success=True,
            status=data.get("status"),
            burn_tx_hash=data.get("burnTxHash"),
            mint_tx_hash=data.get("mintTxHash"),
            completed_at=data.get("completedAt"),
        )

    async def get_supported_domains(self) -> Dict[str, Any]:
        """List CCTP domains known to Circle"""
        try:
            response = await self.client.get("/domains")
            response.raise_for_status()
        except httpx.HTTPError as e:
            message = _error_message(e)
            logger.error("Failed to get supported domains", error=message)
            return {"success": False, "error": message}

        return {"success": True, "domains": response.json().get("data", {}).get("domains", [])}

    def validate_webhook_signature(self, payload: bytes, signature: Optional[str]) -> bool:
        """
        Check a webhook signature.

        Accepts everything unless signature verification is switched on, in
        which case the signature must be the hex HMAC-SHA256 of the raw body.
        """
        if not settings.webhook_verify_signatures:
            return True
        if not signature:
            return False
        expected = hmac.new(
            settings.webhook_secret.encode(), payload, hashlib.sha256
        ).hexdigest()
        return hmac.compare_digest(expected, signature)

    def process_webhook_event(self, event: Dict[str, Any]) -> WebhookEvent:
        """
        Parse a webhook body into a WebhookEvent.

        Raises WebhookError when transferId or status is missing or any
        field has the wrong type.
        """
        try:
            parsed = WebhookEvent.model_validate(event)
        except ValidationError as e:
            fields = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
            raise WebhookError(f"Invalid webhook event fields: {', '.join(fields)}") from e

        logger.info("Processing CCTP webhook event", transfer_id=parsed.transfer_id, status=parsed.status)
        return parsed

    async def get_gas_prices(self) -> Dict[str, float]:
        """Current gas prices per chain"""
        return dict(GAS_PRICES)

    async def execute_post_transfer_hook(self, transfer_id: str, hook: Dict[str, Any]) -> HookExecutionResult:
        """
        Run a post-transfer hook such as an automatic DeFi deposit.

        Hooks are simulated: the result echoes the hook parameters.
        """
        hook_id = f"hook_{transfer_id}"
        logger.info(
            "Executing post-transfer hook",
            transfer_id=transfer_id,
            hook_type=hook.get("type"),
            protocol=hook.get("protocol"),
        )
        return HookExecutionResult(
            success=True,
            hook_id=hook_id,
            result={
                "transferId": transfer_id,
                "type": hook.get("type"),
                "protocol": hook.get("protocol"),
                "chain": hook.get("chain"),
                "amount": hook.get("amount"),
                "parameters": hook.get("parameters", {}),
                "simulated": True,
            },
        )


# Singleton instance
_circle_client: Optional[CircleClient] = None


async def get_circle_client() -> CircleClient:
    """Get or create Circle client singleton"""
    global _circle_client
    if _circle_client is None:
        _circle_client = CircleClient()
        await _circle_client.connect()
    return _circle_client


async def close_circle_client() -> None:
    """Close Circle client singleton"""
    global _circle_client
    if _circle_client is not None:
        await _circle_client.disconnect()
        _circle_client = None
