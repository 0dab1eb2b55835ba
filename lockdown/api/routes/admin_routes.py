"""Admin API routes -- block list, manual block/unblock, cleanup, IP status."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request
from pydantic import BaseModel, Field

from lockdown.api.gate import get_engine
from lockdown.application.protection_engine import ProtectionEngine
from lockdown.domain.errors import ValidationError
from lockdown.domain.invariant import validate_ip
from lockdown.infrastructure.audit import log_event as audit_log
from lockdown.infrastructure.auth.dependencies import require_admin

log = logging.getLogger("lockdown.admin")

router = APIRouter(prefix="/api/admin", tags=["admin"])

# Signed 64-bit ceiling of integer primary keys.
MAX_ROW_ID = 2**63 - 1


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class BlockRequest(BaseModel):
    ip_address: str = Field(..., min_length=1, max_length=45)
    reason: str | None = Field(None, max_length=255)


class CleanupRequest(BaseModel):
    days: int = Field(30, ge=1)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _valid_ip(value: str) -> str:
    try:
        return validate_ip(value)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


def _audit(action: str, current_user: dict, payload: dict) -> None:
    try:
        audit_log(action, current_user.get("username"), payload)
    except OSError as exc:  # pragma: no cover
        log.warning("Audit log write failed: %s", exc)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

@router.get("/blocks")
def api_list_blocks(
    include_expired: bool = Query(False),
    engine: ProtectionEngine = Depends(get_engine),
    current_user: dict = Depends(require_admin),
):
    """Return blocks, newest first, each flagged active or expired."""
    blocks = engine.get_blocked_ips(include_expired=include_expired)
    now = engine.now()
    return {
        "blocks": [b.to_dict(now=now) for b in blocks],
        "total": len(blocks),
    }


@router.post("/blocks", status_code=201)
def api_block_ip(
    req: BlockRequest,
    engine: ProtectionEngine = Depends(get_engine),
    current_user: dict = Depends(require_admin),
):
    """Manually block an IP for the configured lockout duration."""
    ip = _valid_ip(req.ip_address)
    reason = req.reason or "Manually blocked by admin"
    engine.block_ip(ip, 0, reason, is_manual=True)
    _audit("ip_blocked", current_user, {"ip": ip, "reason": reason})
    return {"success": True, "message": "IP address blocked.", "ip_address": ip}


@router.delete("/blocks/id/{block_id}")
def api_unblock_by_id(
    block_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    engine: ProtectionEngine = Depends(get_engine),
    current_user: dict = Depends(require_admin),
):
    if not engine.unblock_by_id(block_id):
        raise HTTPException(status_code=404, detail="Could not unblock IP address.")
    _audit("ip_unblocked", current_user, {"block_id": block_id})
    return {"success": True, "message": "IP address unblocked."}


@router.delete("/blocks/{ip}")
def api_unblock_ip(
    ip: str,
    engine: ProtectionEngine = Depends(get_engine),
    current_user: dict = Depends(require_admin),
):
    ip = _valid_ip(ip)
    if not engine.unblock_ip(ip):
        raise HTTPException(status_code=404, detail=f"IP address {ip} was not found in the block list.")
    _audit("ip_unblocked", current_user, {"ip": ip})
    return {"success": True, "message": "IP address unblocked."}


# ---------------------------------------------------------------------------
# Retention
# ---------------------------------------------------------------------------

@router.post("/cleanup")
def api_cleanup(
    req: CleanupRequest | None = None,
    engine: ProtectionEngine = Depends(get_engine),
    current_user: dict = Depends(require_admin),
):
    days = req.days if req else 30
    deleted = engine.cleanup(days)
    _audit("cleanup", current_user, {"days": days, "deleted": deleted})
    return {"success": True, "deleted": deleted, "days": days}


# ---------------------------------------------------------------------------
# Single IP status
# ---------------------------------------------------------------------------

@router.get("/ips/{ip}")
def api_ip_status(
    ip: str,
    engine: ProtectionEngine = Depends(get_engine),
    current_user: dict = Depends(require_admin),
):
    ip = _valid_ip(ip)
    return {
        "ip_address": ip,
        "blocked": engine.is_blocked(ip),
        "whitelisted": engine.is_whitelisted(ip),
    }


@router.get("/ips/{ip}/attempts")
def api_ip_attempts(
    ip: str,
    limit: int = Query(10, ge=1, le=500),
    engine: ProtectionEngine = Depends(get_engine),
    current_user: dict = Depends(require_admin),
):
    ip = _valid_ip(ip)
    return {
        "ip_address": ip,
        "attempts": [a.to_dict() for a in engine.get_recent_attempts(ip, limit)],
    }


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

@router.post("/notifications/test-pushover")
def api_test_pushover(
    request: Request,
    current_user: dict = Depends(require_admin),
):
    return request.app.state.notifier.send_test_pushover()
