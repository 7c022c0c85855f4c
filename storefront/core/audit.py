"""
Audit logging for state-changing catalog and order operations.

Every event is one JSON line on the "audit" logger so it can be shipped to
centralized logging separately from application logs.
"""
import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

# Separate logger for audit events
audit_logger = logging.getLogger("audit")


def _default(value: Any):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class AuditLog:
    """Central audit logging for business events."""

    @staticmethod
    def _emit(entry: Dict[str, Any], level: int = logging.INFO) -> None:
        entry = {"timestamp": datetime.now(timezone.utc).isoformat(), **entry}
        audit_logger.log(level, json.dumps(entry, default=_default, ensure_ascii=False))

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "status_change"
        resource_type: str,  # "order", "category", "product"
        resource_id: Optional[int],
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log a business-critical change.

        Usage:
            AuditLog.log_action("create", "order", 12, changes={"order_no": "ORD...", "total": "40.00"})
            AuditLog.log_action("delete", "category", 3)
        """
        entry = {
            "event_type": f"{resource_type}.{action}",
            "resource_id": resource_id,
        }
        if changes:
            entry["changes"] = changes
        AuditLog._emit(entry)

    @staticmethod
    def log_rejected(
        action: str,
        resource_type: str,
        resource_id: Optional[int],
        reason: str,
    ):
        """
        Log an operation refused by a business rule (stock, referential integrity).

        Usage:
            AuditLog.log_rejected("delete", "category", 3, "2 products still reference it")
        """
        AuditLog._emit(
            {
                "event_type": f"{resource_type}.{action}.rejected",
                "resource_id": resource_id,
                "reason": reason,
            },
            level=logging.WARNING,
        )

    @staticmethod
    def log_import(imported: int, failed: int, source: str = "rows"):
        """Log the outcome of one catalog import batch."""
        AuditLog._emit(
            {
                "event_type": "catalog.import",
                "source": source,
                "imported": imported,
                "failed": failed,
            },
            level=logging.WARNING if failed else logging.INFO,
        )
