"""
Audit logging of authorization justifications.

Every decided call is recorded with its verdict, deciding rule and parameters;
every call aborted by a fetch failure is recorded with the error.
"""

from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import json
import logging
import threading
import uuid

from ..errors import FetchError
from ..policy.context import EvaluationTrace
from ..policy.types import AuthorizationResult


logger = logging.getLogger(__name__)

DECIDED = "authorization.decided"
FAILED = "authorization.failed"


@dataclass
class AuditEvent:
    """Audit event for one authorize call"""
    event_type: str  # DECIDED or FAILED
    policy: str
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = ""

    def __post_init__(self):
        if not self.event_id:
            self.event_id = str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "policy": self.policy,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
        }


def _jsonable(value: Any) -> Any:
    """json.dumps fallback for opaque subjects, objects and parameters."""
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if isinstance(value, datetime):
        return value.isoformat()
    return repr(value)


_JSON_KEY_TYPES = (str, int, float, bool, type(None))


def _json_safe(value: Any, _active: Optional[set] = None) -> Any:
    """
    Rebuild ``value`` with JSON-compatible keys.

    json.dumps never routes dict keys through ``default``, so keys of any
    other type are converted with ``str``. Recursive containers are cut with
    their repr.
    """
    if is_dataclass(value) and not isinstance(value, type):
        value = {f: getattr(value, f) for f in value.__dataclass_fields__}
    if not isinstance(value, (Mapping, list, tuple, set, frozenset)):
        return value

    active = _active if _active is not None else set()
    if id(value) in active:
        return repr(value)
    active.add(id(value))
    try:
        if isinstance(value, Mapping):
            return {
                (key if isinstance(key, _JSON_KEY_TYPES) else str(key)): _json_safe(item, active)
                for key, item in value.items()
            }
        if isinstance(value, (set, frozenset)):
            return [_json_safe(item, active) for item in sorted(value, key=repr)]
        return [_json_safe(item, active) for item in value]
    finally:
        active.discard(id(value))


def _snapshot(value: Any) -> Any:
    """Copy nested dicts, lists and tuples so later mutation cannot alter a record."""
    if isinstance(value, dict):
        return {key: _snapshot(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_snapshot(item) for item in value]
    if isinstance(value, tuple) and type(value) is tuple:
        return tuple(_snapshot(item) for item in value)
    return value


class AuditLogger(ABC):
    """Abstract base class for audit logging"""

    @abstractmethod
    def log(self, event: AuditEvent) -> None:
        """Log an audit event"""
        pass

    @abstractmethod
    def get_events(
        self,
        policy: Optional[str] = None,
        event_type: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> List[AuditEvent]:
        """Retrieve audit events with optional filtering"""
        pass

    def log_result(self, policy: str, result: AuthorizationResult, trace: Optional[EvaluationTrace] = None) -> None:
        """Record a decided authorize call"""
        details = result.to_dict()
        if trace is not None:
            details["trace"] = trace.to_dict()
        self.log(AuditEvent(event_type=DECIDED, policy=policy, details=_snapshot(details)))

    def log_failure(self, policy: str, error: FetchError, action: Any,
                    trace: Optional[EvaluationTrace] = None) -> None:
        """Record an authorize call aborted by a fetch failure"""
        details = {"action": action, "error": error.to_dict()}
        if trace is not None:
            details["trace"] = trace.to_dict()
        self.log(AuditEvent(event_type=FAILED, policy=policy, details=_snapshot(details)))

    def close(self) -> None:
        """Close the audit logger and release resources"""
        pass


def _matches(event: AuditEvent, policy, event_type, start_time, end_time) -> bool:
    if policy and event.policy != policy:
        return False
    if event_type and event.event_type != event_type:
        return False
    if start_time and event.timestamp < start_time:
        return False
    if end_time and event.timestamp > end_time:
        return False
    return True


class MemoryAuditLogger(AuditLogger):
    """In-memory audit logger for development and testing"""

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self.events: deque = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def log(self, event: AuditEvent) -> None:
        """Log an audit event to memory"""
        with self._lock:
            self.events.append(event)

    def get_events(
        self,
        policy: Optional[str] = None,
        event_type: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> List[AuditEvent]:
        """Retrieve audit events with optional filtering"""
        with self._lock:
            return [
                event for event in self.events
                if _matches(event, policy, event_type, start_time, end_time)
            ]


class FileAuditLogger(AuditLogger):
    """JSON-lines audit logger for persistent storage"""

    def __init__(self, file_path: str):
        self.file_path = file_path
        self._lock = threading.Lock()

    def log(self, event: AuditEvent) -> None:
        """Append an audit event to the file"""
        with self._lock:
            try:
                line = json.dumps(_json_safe(event.to_dict()), default=_jsonable)
                with open(self.file_path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
            except (TypeError, ValueError, OSError) as e:
                logger.error(f"Failed to write audit log {self.file_path}: {e}")

    def get_events(
        self,
        policy: Optional[str] = None,
        event_type: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> List[AuditEvent]:
        """Read audit events back from the file with optional filtering"""
        events = []

        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                for line in f:
                    try:
                        data = json.loads(line.strip())
                        event = AuditEvent(
                            event_id=data["event_id"],
                            event_type=data["event_type"],
                            policy=data["policy"],
                            timestamp=datetime.fromisoformat(data["timestamp"]),
                            details=data["details"],
                        )
                    except (json.JSONDecodeError, KeyError) as e:
                        logger.warning(f"Skipping malformed audit line in {self.file_path}: {e}")
                        continue

                    if _matches(event, policy, event_type, start_time, end_time):
                        events.append(event)

        except FileNotFoundError:
            pass

        return events


def create_audit_logger(logger_type: str = "memory", **kwargs) -> AuditLogger:
    """
    Factory function to create audit loggers

    Args:
        logger_type: Type of logger ("memory" or "file")
        **kwargs: Additional arguments for the logger

    Returns:
        AuditLogger instance
    """
    if logger_type == "memory":
        return MemoryAuditLogger(kwargs.get("max_entries") or 1000)
    elif logger_type == "file":
        return FileAuditLogger(kwargs.get("file_path") or "audit.log")
    else:
        raise ValueError(f"Unknown logger type: {logger_type}")
