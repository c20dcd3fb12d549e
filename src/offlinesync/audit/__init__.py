from .sink import (
    REDACTED,
    SENSITIVE_FIELDS,
    AuditEvent,
    AuditEventType,
    AuditSink,
    LoggingAuditSink,
    sanitize_data,
)

__all__ = [
    "AuditEvent",
    "AuditEventType",
    "AuditSink",
    "LoggingAuditSink",
    "sanitize_data",
    "REDACTED",
    "SENSITIVE_FIELDS",
]
