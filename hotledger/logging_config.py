"""
Logging configuration for HotLedger.

Provides structured JSON logging for audit trails and debugging.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import List, Optional

# Context variable for request ID tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    One JSON object per line, suitable for log aggregation.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class AuditLogger:
    """
    Specialized logger for ledger audit events.

    Records committed transfers, redirections, recipient registrations and
    emergency withdrawals, plus every rejected operation.
    """

    def __init__(self, name: str = "hotledger.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        """Internal logging method with extra fields."""
        extra = {
            "event_type": event_type,
            "request_id": request_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def transfer(self, sender: str, destination: str, amount: int) -> None:
        self._log(
            logging.INFO,
            "TRANSFER",
            sender=sender,
            destination=destination,
            amount=str(amount),
            message=f"Transfer {amount} from {sender} to {destination}"
        )

    def transfer_redirected(self, nominal: str, resolved: str, chain: List[str], amount: int) -> None:
        """Log a credit rerouted away from a blacklisted destination."""
        self._log(
            logging.INFO,
            "TRANSFER_REDIRECTED",
            nominal=nominal,
            resolved=resolved,
            chain=chain,
            amount=str(amount),
            message=f"Credit for {nominal} redirected to {resolved}"
        )

    def recipient_set(self, account: str, recipient: str) -> None:
        self._log(
            logging.INFO,
            "RECIPIENT_SET",
            account=account,
            recipient=recipient,
            message=f"Emergency recipient for {account} set to {recipient}"
        )

    def emergency_withdraw(self, owner: str, recipient: str, amount: int, deadline: int) -> None:
        self._log(
            logging.WARNING,
            "EMERGENCY_WITHDRAW",
            owner=owner,
            recipient=recipient,
            amount=str(amount),
            deadline=deadline,
            message=f"Emergency withdraw of {owner}: {amount} to {recipient}"
        )

    def operation_rejected(
        self,
        operation: str,
        failure_code: str,
        address: Optional[str] = None,
        detail: Optional[str] = None
    ) -> None:
        self._log(
            logging.WARNING,
            "OPERATION_REJECTED",
            operation=operation,
            failure_code=failure_code,
            address=address,
            detail=detail,
            message=f"{operation} rejected: {failure_code}"
        )

    def security_event(
        self,
        event: str,
        severity: str = "medium",
        **details
    ) -> None:
        """Log a security-relevant event."""
        level = {
            "low": logging.INFO,
            "medium": logging.WARNING,
            "high": logging.ERROR,
            "critical": logging.CRITICAL
        }.get(severity, logging.WARNING)

        self._log(
            level,
            "SECURITY_EVENT",
            security_event=event,
            severity=severity,
            **details,
            message=f"Security event: {event}"
        )

    def rate_limit_exceeded(self, account: str, endpoint: str, retry_after: float) -> None:
        self._log(
            logging.WARNING,
            "RATE_LIMIT_EXCEEDED",
            account=account,
            endpoint=endpoint,
            retry_after=round(retry_after, 3),
            message=f"Rate limit exceeded for {account} on {endpoint}"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting (recommended for production)
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set the request ID for the current context.

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> str:
    return request_id_var.get()


# Global audit logger instance
audit_log = AuditLogger()
