"""Remittance API endpoints"""
import json
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.models.transfer import TransferIntent, TransferStatus, ZERO_ADDRESS
from app.schemas.transfer import (
    ChainInfo,
    ChainsResponse,
    HistoryEntry,
    HistoryResponse,
    RouteDataResponse,
    RouteRequest,
    RouteResponse,
    TransferCreatedResponse,
    TransferRecord,
    TransferRequest,
    TransferStatusDetail,
    TransferStatusResponse,
    WebhookResponse,
)
from app.services.circle_client import CircleClient, WebhookError, get_circle_client
from app.services.demo_progress import advance_demo_transfer
from app.services.routing import (
    CCTP_FEE,
    calculate_optimal_route,
    generate_transfer_id,
    get_cctp_config,
    get_chain_config,
    short_chain_name,
    supported_chains,
    to_usdc_units,
    validate_chain_configuration,
)
from app.services.transfer_store import TransferStore, get_transfer_store

logger = structlog.get_logger()
settings = get_settings()

router = APIRouter()

SIGNATURE_HEADER = "X-Circle-Signature"
VALID_STATUSES = {s.value for s in TransferStatus}


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unparseable timestamp from Circle", value=value)
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@router.post("/route", response_model=RouteResponse)
async def calculate_route(request: RouteRequest):
    """Pick the destination chain and fee for a prospective transfer"""
    route = calculate_optimal_route(
        request.amount,
        request.source_chain,
        request.destination_chain,
        request.intent.value,
    )
    return RouteResponse(data=RouteDataResponse.model_validate(route))


@router.post("/transfer", response_model=TransferCreatedResponse, response_model_exclude_none=True)
@router.post("/initiate", response_model=TransferCreatedResponse, response_model_exclude_none=True,
             include_in_schema=False)
async def create_transfer(
    request: TransferRequest,
    store: TransferStore = Depends(get_transfer_store),
    circle: CircleClient = Depends(get_circle_client),
):
    """
    Record a new transfer.

    Chains outside the supported CCTP testnets still get a record, marked as
    a demo transfer. When live transfers are enabled the USDC burn is also
    requested from Circle and the record follows its outcome.
    """
    logger.info(
        "Transfer request received",
        amount=request.amount,
        source_chain=request.source_chain,
        destination_chain=request.destination_chain,
        intent=request.intent.value,
    )
    sender = request.sender_address or ZERO_ADDRESS

    if not validate_chain_configuration(request.source_chain, request.destination_chain):
        logger.info("Falling back to demo transfer", source_chain=request.source_chain)
        transfer_id = generate_transfer_id("demo")
        await store.create({
            "transfer_id": transfer_id,
            "sender": sender,
            "recipient": request.recipient_address,
            "amount": request.amount,
            "source_chain": request.source_chain,
            "destination_chain": request.destination_chain,
            "intent": request.intent,
            "status": TransferStatus.PENDING,
            "estimated_fees": CCTP_FEE,
            "suggested_actions": ["Demo transfer - chain configuration not fully supported"],
            "email": request.email,
            "note": request.note,
        })
        return TransferCreatedResponse(
            transfer_id=transfer_id,
            message="Demo transfer initiated (chain configuration not fully supported)",
            status=TransferStatus.PENDING,
            estimated_fees=CCTP_FEE,
            demo=True,
        )

    route = calculate_optimal_route(
        request.amount,
        request.source_chain,
        request.destination_chain,
        request.intent.value,
    )
    transfer_id = generate_transfer_id()
    await store.create({
        "transfer_id": transfer_id,
        "sender": sender,
        "recipient": request.recipient_address,
        "amount": request.amount,
        "source_chain": request.source_chain,
        "destination_chain": request.destination_chain,
        "intent": request.intent,
        "status": TransferStatus.PENDING,
        "estimated_fees": route.estimated_fees,
        "suggested_actions": route.suggested_actions,
        "email": request.email,
        "note": request.note,
    })
    logger.info("Transfer saved", transfer_id=transfer_id, backend=store.backend)

    response = TransferCreatedResponse(
        transfer_id=transfer_id,
        message="Transfer initiated successfully",
        status=TransferStatus.PENDING,
        estimated_fees=route.estimated_fees,
        route=RouteDataResponse.model_validate(route),
    )

    if settings.circle_live_transfers and circle.configured:
        source = get_chain_config(short_chain_name(request.source_chain))
        destination = get_chain_config(short_chain_name(request.destination_chain))
        result = await circle.initiate_transfer(
            amount=to_usdc_units(request.amount),
            destination_address=request.recipient_address,
            destination_domain=destination.domain,
            source_domain=source.domain,
            sender_address=sender,
        )

        if not result.success:
            await store.update(transfer_id, status=TransferStatus.FAILED, error=result.error)
            logger.error("CCTP transfer failed", transfer_id=transfer_id, error=result.error)
            return JSONResponse(
                status_code=400,
                content={"success": False, "error": result.error, "transferId": transfer_id},
            )

        await store.update(
            transfer_id,
            tx_hash=result.tx_hash,
            cctp_transfer_id=result.transfer_id,
            status=TransferStatus.PROCESSING,
        )
        logger.info("CCTP transfer initiated", transfer_id=transfer_id, cctp_transfer_id=result.transfer_id)
        response.status = TransferStatus.PROCESSING
        response.cctp_transfer_id = result.transfer_id
        response.tx_hash = result.tx_hash
        response.message = "Transfer initiated successfully with Circle CCTP V2"

    return response


@router.get("/status/{transfer_id}", response_model=TransferStatusResponse)
async def get_transfer_status(
    transfer_id: str,
    store: TransferStore = Depends(get_transfer_store),
    circle: CircleClient = Depends(get_circle_client),
):
    """Current status of a transfer, advancing demo progress and syncing with Circle"""
    transfer = await store.find_by_transfer_id(transfer_id)
    if not transfer:
        raise HTTPException(status_code=404, detail="Transfer not found")

    changes = advance_demo_transfer(transfer)
    if changes:
        logger.info("Advancing demo transfer", transfer_id=transfer_id, fields=sorted(changes))
        transfer = await store.update(transfer_id, **changes)

    cctp_status = None
    if transfer.cctp_transfer_id and circle.configured:
        result = await circle.get_transfer_status(transfer.cctp_transfer_id)
        if result.success and result.status in VALID_STATUSES:
            cctp_status = result
            if result.status != transfer.status:
                update = {"status": result.status}
                if result.mint_tx_hash:
                    update["destination_tx_hash"] = result.mint_tx_hash
                completed_at = _parse_timestamp(result.completed_at)
                if completed_at:
                    update["completed_at"] = completed_at
                transfer = await store.update(transfer_id, **update)
        elif result.success:
            logger.warning("Ignoring unknown CCTP status", transfer_id=transfer_id, status=result.status)

    mint_tx_hash = transfer.destination_tx_hash
    completed_at = None
    if transfer.status == TransferStatus.COMPLETED.value:
        completed_at = transfer.completed_at or transfer.updated_at
    if cctp_status is not None:
        mint_tx_hash = cctp_status.mint_tx_hash or mint_tx_hash
        completed_at = _parse_timestamp(cctp_status.completed_at) or completed_at

    return TransferStatusResponse(
        transfer=TransferStatusDetail(
            transfer_id=transfer.transfer_id,
            status=transfer.status,
            burn_tx_hash=transfer.tx_hash,
            mint_tx_hash=mint_tx_hash,
            completed_at=completed_at,
            fees_paid=transfer.estimated_fees,
            hooks_executed=transfer.status == TransferStatus.COMPLETED.value,
        )
    )


@router.get("/chains", response_model=ChainsResponse)
async def get_supported_chains():
    """Chains with a CCTP deployment"""
    return ChainsResponse(chains=[ChainInfo(**chain) for chain in supported_chains()])


@router.get("/history/{address}", response_model=HistoryResponse)
async def get_transfer_history(
    address: str,
    store: TransferStore = Depends(get_transfer_store),
):
    """Transfers sent or received by an address, newest first"""
    transfers = await store.find_by_address(address)

    history = [
        HistoryEntry(
            transfer_id=t.transfer_id,
            amount=t.amount,
            source_chain=t.source_chain,
            destination_chain=t.destination_chain,
            status=t.status,
            timestamp=t.created_at,
            fees=t.estimated_fees,
            hooks_executed=t.status == TransferStatus.COMPLETED.value,
        )
        for t in transfers
    ]
    return HistoryResponse(history=history, total=len(history))


@router.post("/webhook", response_model=WebhookResponse)
async def cctp_webhook(
    request: Request,
    store: TransferStore = Depends(get_transfer_store),
    circle: CircleClient = Depends(get_circle_client),
):
    """Apply a Circle CCTP status update to the matching transfer"""
    payload = await request.body()

    if not circle.validate_webhook_signature(payload, request.headers.get(SIGNATURE_HEADER)):
        logger.warning("Rejected webhook with invalid signature")
        raise HTTPException(status_code=400, detail="Invalid webhook signature")

    try:
        body = json.loads(payload)
        if not isinstance(body, dict):
            raise WebhookError("Webhook body must be a JSON object")
        event = circle.process_webhook_event(body)
    except ValueError as e:
        logger.warning("Failed to process webhook", error=str(e))
        raise HTTPException(status_code=400, detail="Failed to process webhook")

    transfer = await store.find_by_cctp_id(event.transfer_id)
    if not transfer:
        logger.warning("Webhook received for unknown transfer", cctp_transfer_id=event.transfer_id)
        raise HTTPException(status_code=404, detail="Transfer not found")

    completed = event.status == TransferStatus.COMPLETED.value
    changes = {"status": TransferStatus.COMPLETED if completed else TransferStatus.FAILED}
    if completed:
        changes["completed_at"] = datetime.utcnow()
    if event.destination_tx_hash:
        changes["destination_tx_hash"] = event.destination_tx_hash
    if event.error:
        changes["error"] = event.error

    updated = await store.update_by_cctp_id(event.transfer_id, **changes)
    logger.info(
        "Transfer status updated via webhook",
        transfer_id=updated.transfer_id,
        cctp_transfer_id=event.transfer_id,
        status=updated.status,
    )

    if completed and updated.intent == TransferIntent.MAXIMIZE_YIELD.value:
        logger.info("Executing yield maximization hook", transfer_id=updated.transfer_id)
        await circle.execute_post_transfer_hook(
            updated.transfer_id,
            {
                "type": "defi_deposit",
                "protocol": "aave",
                "chain": updated.destination_chain,
                "amount": updated.amount,
                "parameters": {"trigger": "cctp_webhook"},
            },
        )

    return WebhookResponse(transfer=TransferRecord.model_validate(updated))


@router.get("/cctp/status")
async def get_cctp_status():
    """CCTP V2 configuration summary"""
    return {
        "success": True,
        "status": {
            "service": "Circle CCTP V2",
            "environment": settings.circle_environment,
            "supportedChains": list(get_cctp_config().keys()),
            "apiConfigured": bool(settings.circle_api_key),
            "clientConfigured": bool(settings.circle_client_key),
            "infuraConfigured": bool(settings.infura_project_id),
            "timestamp": datetime.utcnow().isoformat(),
        },
    }
