"""
Audit Logger

DESIGN DECISION: Every balance-affecting action in the ledger is logged.
This provides:
1. Traceability from a wallet balance back to its transactions
2. A visible record of every self-healing correction
3. Debugging capability when the store misbehaves

The audit logger:
- Is async so repositories can await it inline
- Gracefully handles failures (a logging problem never fails a mutation)
- Supports correlation IDs to trace related events
"""

import logging
from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from wallet_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity

AUDIT_LOGGER_NAME = "wallet_ledger.audit"


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events to:
    1. Structured local log (JSON lines through structlog)
    2. A bounded in-memory history, so callers can show recent warnings
    """

    def __init__(self, history_size: int = 200, debug: bool = False):
        """
        Initialize audit logger.

        Args:
            history_size: How many recent events to keep in memory.
                    0 disables the history.
            debug: Emit DEBUG-severity events (wallet selection and the
                    like). Otherwise the log starts at INFO; the history
                    keeps every event either way.
        """
        self._recent: deque[AuditEvent] = deque(maxlen=history_size or None)
        self._keep_history = history_size > 0
        self._debug = debug
        logging.getLogger(AUDIT_LOGGER_NAME).setLevel(logging.DEBUG if debug else logging.INFO)
        self._logger = structlog.get_logger(AUDIT_LOGGER_NAME)

    @property
    def debug(self) -> bool:
        return self._debug

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was emitted, False if the log backend
        raised (the failure itself is reported, never propagated).
        """
        if self._keep_history:
            self._recent.append(event)

        log_dict = event.to_log_dict()
        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            self._logger.error(
                "audit_emit_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

        return True

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        events = list(self._recent)
        events.reverse()
        return events[:limit]

    def warnings(self) -> list[AuditEvent]:
        """Recent events at WARNING severity or above, oldest first."""
        return [
            e for e in self._recent
            if e.severity in (AuditSeverity.WARNING, AuditSeverity.ERROR, AuditSeverity.CRITICAL)
        ]

    def clear(self) -> None:
        self._recent.clear()

    async def log_balance_healed(
        self,
        wallet_id: str,
        stored: str,
        expected: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a stored balance overwritten from transaction history."""
        event = AuditEventBuilder.balance_healed(
            wallet_id=wallet_id,
            stored=stored,
            expected=expected,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_orphan_dropped(
        self,
        transaction_id: str,
        wallet_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a transaction ignored because its wallet is gone."""
        event = AuditEventBuilder.orphan_dropped(
            transaction_id=transaction_id,
            wallet_id=wallet_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_record_skipped(
        self,
        key: str,
        index: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a malformed stored record."""
        event = AuditEventBuilder.record_skipped(
            key=key,
            index=index,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_store_unavailable(
        self,
        key: Optional[str],
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a store read or write that failed."""
        event = AuditEventBuilder.store_unavailable(
            key=key,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_mutation_rejected(
        self,
        operation: str,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a mutation refused before anything was written."""
        event = AuditEventBuilder.mutation_rejected(
            operation=operation,
            error_code=error_code,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., saving a transaction).
    Pass it through all subsequent operations.
    """
    return uuid4()
