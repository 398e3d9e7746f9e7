"""
Audit Models for Wallet Ledger

Every balance-affecting action in the system is logged for audit purposes.
This provides:
1. Traceability of every balance change back to the transaction behind it
2. A record of every self-healing correction made on load
3. Debugging information when the store misbehaves

DESIGN DECISION: Audit events are emitted, never edited.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from wallet_ledger.models.timestamps import utc_now


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Wallets
    WALLET_CREATED = "wallet_created"
    WALLET_UPDATED = "wallet_updated"
    WALLET_DELETED = "wallet_deleted"
    WALLET_SELECTED = "wallet_selected"

    # Transactions
    TRANSACTION_SAVED = "transaction_saved"
    TRANSACTION_DELETED = "transaction_deleted"
    MUTATION_REJECTED = "mutation_rejected"

    # Load-time reconciliation
    BALANCE_HEALED = "balance_healed"
    BASELINE_ESTABLISHED = "baseline_established"
    ORPHAN_DROPPED = "orphan_dropped"
    RECORD_SKIPPED = "record_skipped"
    CURRENCY_MIGRATED = "currency_migrated"

    # Goals
    GOAL_CREATED = "goal_created"
    GOAL_UPDATED = "goal_updated"
    GOAL_DELETED = "goal_deleted"
    SAVINGS_ADDED = "savings_added"

    # System events
    STORE_UNAVAILABLE = "store_unavailable"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'wallet', 'transaction', 'goal')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one transaction edit)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_saved(tx_id, wallet_id, ...)
        event = AuditEventBuilder.balance_healed(wallet_id, stored, expected)
    """

    @staticmethod
    def wallet_created(
        wallet_id: str,
        name: str,
        currency: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WALLET_CREATED,
            entity_type="wallet",
            entity_id=wallet_id,
            correlation_id=correlation_id,
            description=f"Wallet created: {name} ({currency})",
            details={
                "name": name,
                "currency": currency,
                "starting_amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def wallet_updated(
        wallet_id: str,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WALLET_UPDATED,
            entity_type="wallet",
            entity_id=wallet_id,
            correlation_id=correlation_id,
            description=f"Wallet updated: {', '.join(sorted(changes)) or 'no changes'}",
            details=changes,
            is_user_action=True,
        )

    @staticmethod
    def wallet_deleted(
        wallet_id: str,
        removed_transactions: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WALLET_DELETED,
            entity_type="wallet",
            entity_id=wallet_id,
            correlation_id=correlation_id,
            description=f"Wallet deleted with {removed_transactions} transactions",
            details={
                "removed_transactions": removed_transactions,
            },
            is_user_action=True,
        )

    @staticmethod
    def wallet_selected(
        wallet_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WALLET_SELECTED,
            severity=AuditSeverity.DEBUG,
            entity_type="wallet",
            entity_id=wallet_id,
            correlation_id=correlation_id,
            description="Wallet selected for the home screen",
            is_user_action=True,
        )

    @staticmethod
    def transaction_saved(
        transaction_id: str,
        wallet_id: str,
        tx_type: str,
        amount: str,
        is_edit: bool,
        balance_changes: dict[str, str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        verb = "edited" if is_edit else "recorded"
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction {verb}: {tx_type} {amount}",
            details={
                "wallet_id": wallet_id,
                "type": tx_type,
                "amount": amount,
                "is_edit": is_edit,
                "balances": balance_changes,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        wallet_id: Optional[str],
        balance_changes: dict[str, str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction deleted",
            details={
                "wallet_id": wallet_id,
                "balances": balance_changes,
            },
            is_user_action=True,
        )

    @staticmethod
    def mutation_rejected(
        operation: str,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_REJECTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"{operation} rejected: {error_code}",
            error_code=error_code,
            error_message=error_message,
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def balance_healed(
        wallet_id: str,
        stored: str,
        expected: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_HEALED,
            severity=AuditSeverity.WARNING,
            entity_type="wallet",
            entity_id=wallet_id,
            correlation_id=correlation_id,
            description=f"Stored balance {stored} replaced by {expected} from history",
            error_code="inconsistent_state",
            details={
                "stored": stored,
                "expected": expected,
            },
        )

    @staticmethod
    def baseline_established(
        wallet_id: str,
        starting_amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BASELINE_ESTABLISHED,
            entity_type="wallet",
            entity_id=wallet_id,
            correlation_id=correlation_id,
            description=f"Starting balance derived from stored balance: {starting_amount}",
            details={
                "starting_amount": starting_amount,
            },
        )

    @staticmethod
    def orphan_dropped(
        transaction_id: str,
        wallet_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ORPHAN_DROPPED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction references missing wallet {wallet_id}",
            details={
                "wallet_id": wallet_id,
            },
        )

    @staticmethod
    def record_skipped(
        key: str,
        index: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SKIPPED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Malformed record #{index} under '{key}' skipped",
            error_message=error_message,
            details={
                "key": key,
                "index": index,
            },
        )

    @staticmethod
    def currency_migrated(
        wallet_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CURRENCY_MIGRATED,
            entity_type="wallet",
            correlation_id=correlation_id,
            description=f"Legacy currency codes migrated on {len(wallet_ids)} wallets",
            details={
                "wallet_ids": wallet_ids,
            },
        )

    @staticmethod
    def goal_changed(
        event_type: AuditEventType,
        goal_id: str,
        title: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description=f"Goal {event_type.value.split('_')[-1]}: {title}",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def savings_added(
        goal_id: str,
        requested: str,
        applied: str,
        current: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVINGS_ADDED,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description=f"Added {applied} to savings (requested {requested})",
            details={
                "requested": requested,
                "applied": applied,
                "current_amount": current,
            },
            is_user_action=True,
        )

    @staticmethod
    def store_unavailable(
        key: Optional[str],
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_UNAVAILABLE,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Store unavailable for key '{key}', treating as empty",
            error_code="store_unavailable",
            error_message=error_message,
            details={
                "key": key,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
