"""
Audit module initialization
"""

from .logger import (
    AuditEvent, AuditLogger, MemoryAuditLogger, FileAuditLogger,
    create_audit_logger, DECIDED, FAILED
)

__all__ = [
    "AuditEvent",
    "AuditLogger",
    "MemoryAuditLogger",
    "FileAuditLogger",
    "create_audit_logger",
    "DECIDED",
    "FAILED"
]
