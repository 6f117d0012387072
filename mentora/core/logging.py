"""
Structured logging for auditability.
All side effects must be logged.
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional
import json

from bson import ObjectId


class MongoEncoder(json.JSONEncoder):
    """JSON encoder that handles ObjectId and datetime values."""
    def default(self, obj):
        if isinstance(obj, ObjectId):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


class AuditLogger:
    """
    Audit logger for tracking all system side effects.
    Logs are structured JSON for easy parsing and analysis.
    """

    def __init__(self, name: str = "mentora"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Console handler with JSON formatting
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setLevel(logging.INFO)
            formatter = logging.Formatter('%(message)s')
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def _log(
        self,
        level: str,
        event: str,
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        error: Optional[str] = None
    ) -> None:
        """Internal logging method that produces structured JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "actor": {
                "id": actor_id,
                "role": actor_role
            } if actor_id else None,
            "target": {
                "type": target_type,
                "id": target_id
            } if target_type else None,
            "details": details,
            "error": error
        }

        # Remove None values for cleaner logs
        log_entry = {k: v for k, v in log_entry.items() if v is not None}

        log_method = getattr(self.logger, level.lower())
        log_method(json.dumps(log_entry, cls=MongoEncoder))

    def info(
        self,
        event: str,
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None
    ) -> None:
        """Log an informational event."""
        self._log("INFO", event, actor_id, actor_role, target_type, target_id, details)

    def warning(
        self,
        event: str,
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None
    ) -> None:
        """Log a warning event."""
        self._log("WARNING", event, actor_id, actor_role, target_type, target_id, details)

    def error(
        self,
        event: str,
        error: str,
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None
    ) -> None:
        """Log an error event."""
        self._log("ERROR", event, actor_id, actor_role, target_type, target_id, details, error)

    # Specific audit events
    def log_auth_rejected(self, reason: str, email: Optional[str] = None) -> None:
        """Log a rejected credential or role check."""
        self.warning("auth.rejected", actor_id=email, details={"reason": reason})

    def log_user_created(self, email: str) -> None:
        """Log first sign-in user creation."""
        self.info(
            "user.created",
            actor_id=email,
            actor_role="student",
            target_type="user",
            target_id=email
        )

    def log_role_change(
        self,
        actor_email: Optional[str],
        target_id: str,
        role: str,
        status: Optional[str] = None
    ) -> None:
        """Log a teacher application, teacher review or admin elevation."""
        self.info(
            "user.role.changed",
            actor_id=actor_email,
            target_type="user",
            target_id=target_id,
            details={"role": role, "status": status}
        )

    def log_write(
        self,
        event: str,
        target_type: str,
        target_id: Any,
        actor_email: Optional[str] = None,
        actor_role: Optional[str] = None,
        details: Optional[dict[str, Any]] = None
    ) -> None:
        """Log a single-document write on a resource collection."""
        self.info(
            event,
            actor_id=actor_email,
            actor_role=actor_role,
            target_type=target_type,
            target_id=str(target_id) if target_id is not None else None,
            details=details
        )

    def log_failure(self, event: str, exc: BaseException, **context: Any) -> None:
        """Log a store or provider failure that was mapped to an HTTP 500."""
        self.error(event, error=str(exc), details=context or None)


# Global audit logger instance
audit_log = AuditLogger()
