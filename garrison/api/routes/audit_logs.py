"""Audit log endpoints."""

from datetime import datetime

from fastapi import APIRouter, Query

from garrison.api.dependencies import (
    AuditStoreDep,
    AuditVerifierDep,
    AuditWriterDep,
    SettingsDep,
)
from garrison.api.middleware.auth import AuditReader
from garrison.api.models.audit import (
    AuditLogPageResponse,
    AuditLogResponse,
    ChainVerificationResponse,
)
from garrison.audit import AuditLogFilter
from garrison.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/audit-logs")

MAX_PAGE_SIZE = 1000


@router.get("", response_model=AuditLogPageResponse)
async def list_audit_logs(
    principal: AuditReader,
    store: AuditStoreDep,
    settings: SettingsDep,
    actor_id: str | None = Query(default=None, alias="actorId"),
    action: str | None = Query(default=None),
    entity: str | None = Query(default=None),
    start_time: datetime | None = Query(default=None, alias="from"),
    end_time: datetime | None = Query(default=None, alias="to"),
    limit: int | None = Query(default=None),
    offset: int = Query(default=0),
) -> AuditLogPageResponse:
    """List audit entries, most recent first."""
    default_limit = settings.audit.default_page_size
    limit = min(MAX_PAGE_SIZE, max(1, limit if limit is not None else default_limit))
    offset = max(0, offset)

    filters = AuditLogFilter(
        actor_id=actor_id,
        action=action,
        entity=entity,
        start_time=start_time,
        end_time=end_time,
    )
    entries = await store.list_entries(filters, limit=limit, offset=offset)
    total = await store.count(filters)

    logger.info("audit_logs_fetched", user_id=principal.user_id, total=total)
    return AuditLogPageResponse(
        items=[AuditLogResponse.from_entry(e) for e in entries],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(entries) < total,
    )


@router.get("/verify", response_model=ChainVerificationResponse)
async def verify_audit_chain(
    principal: AuditReader,
    verifier: AuditVerifierDep,
    writer: AuditWriterDep,
) -> ChainVerificationResponse:
    """Recompute the whole chain and report the first break, if any."""
    result = await verifier.verify()
    await writer.append(
        actor_id=principal.user_id,
        action="audit_chain_verified",
        entity="audit_logs",
        ip=principal.ip,
        metadata={
            "valid": result.valid,
            "checked": result.checked,
            "brokenAt": result.broken_at,
        },
    )
    return ChainVerificationResponse.from_result(result)
