"""Best-effort audit writer.

Callers record sensitive actions without caring whether the audit
backend is healthy: a failed append is logged and counted, never raised.
"""

import time
from typing import Any

from garrison.audit.models import AuditDraft
from garrison.audit.store import AuditStore
from garrison.observability.logging import get_logger
from garrison.observability.metrics import (
    AUDIT_APPEND_FAILURES,
    AUDIT_APPEND_LATENCY,
    AUDIT_APPENDS,
)

logger = get_logger(__name__)


class AuditWriter:
    """Appends entries to the audit chain."""

    def __init__(self, store: AuditStore) -> None:
        self._store = store

    async def append(
        self,
        actor_id: str,
        action: str,
        entity: str,
        entity_id: str | None = None,
        ip: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """Record an action.

        Args:
            actor_id: User who performed the action
            action: Operation name
            entity: Affected object type
            entity_id: Affected object id
            ip: Originating address
            metadata: Free-form payload, hashed with the entry

        Returns:
            True if the entry was stored, False if the append failed
        """
        start = time.perf_counter()
        try:
            draft = AuditDraft(
                actor_id=actor_id,
                action=action,
                entity=entity,
                entity_id=entity_id,
                ip=ip,
                metadata=metadata,
            )
            entry = await self._store.append(draft)
        except Exception as e:
            AUDIT_APPEND_FAILURES.labels(action=action, error_type=type(e).__name__).inc()
            logger.error(
                "audit_log_failed",
                actor_id=actor_id,
                action=action,
                entity=entity,
                entity_id=entity_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        AUDIT_APPEND_LATENCY.observe(time.perf_counter() - start)
        AUDIT_APPENDS.labels(action=action).inc()
        logger.info(
            "audit_log_created",
            actor_id=actor_id,
            action=action,
            entity=entity,
            entity_id=entity_id,
            sequence=entry.sequence,
        )
        return True
