import logging
import json
import os
import time
import hashlib
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from .models import LogEntry, ComponentType, EventType

# Payload logging: off by default, memo bodies are user content
ENABLE_FULL_PAYLOAD_LOGGING = os.getenv("GITMEMO_FULL_PAYLOAD_LOGGING", "false").lower() == "true"
MAX_PAYLOAD_SIZE_BYTES = int(os.getenv("GITMEMO_MAX_PAYLOAD_BYTES", "20000"))
LOG_LEVEL = os.getenv("GITMEMO_LOG_LEVEL", "INFO").upper()

SENSITIVE_KEYS = frozenset({"token", "authorization", "access_token", "password"})
REDACTED = "***"

# Events that signal degraded behaviour go out at WARNING
WARNING_EVENTS = frozenset({EventType.ASSET_CLEANUP_FAILED, EventType.RETRY_SCHEDULED, EventType.ACTION_FAILED})


class GitMemoJSONFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super(GitMemoJSONFormatter, self).add_fields(log_record, record, message_dict)
        if not log_record.get('timestamp'):
            log_record['timestamp'] = time.time()
        if log_record.get('level'):
            log_record['level'] = log_record['level'].upper()
        else:
            log_record['level'] = record.levelname


def get_logger(name: str):
    logger = logging.getLogger(name)
    # Loggers are process-wide; only attach one handler per name
    if not any(isinstance(h.formatter, GitMemoJSONFormatter) for h in logger.handlers):
        handler = logging.StreamHandler()
        formatter = GitMemoJSONFormatter('%(timestamp)s %(level)s %(name)s %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(LOG_LEVEL)
    logger.propagate = False
    return logger


def redact(value: Any) -> Any:
    """Copy of value with credential-like keys masked, at any depth."""
    if isinstance(value, dict):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_KEYS else redact(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    return value


class StructuredLogger:
    """
    JSON logger for one component of the store.

    Events become LogEntry records; payloads are hashed for correlation
    and only written in full when GITMEMO_FULL_PAYLOAD_LOGGING is on.
    Credentials are masked either way.
    """

    def __init__(self, component: ComponentType):
        self.logger = get_logger(f"gitmemo.{component.value}")
        self.component = component

    def hash_payload(self, payload: Any) -> str:
        dumped = json.dumps(redact(payload), sort_keys=True, default=str)
        return hashlib.md5(dumped.encode()).hexdigest()[:16]

    def log_event(self,
                  trace_id: str,
                  event_type: EventType,
                  payload: Any,
                  metrics: Dict[str, Any] = None):
        safe_payload = redact(payload)
        entry = LogEntry(
            trace_id=trace_id,
            component=self.component,
            event_type=event_type,
            payload_hash=self.hash_payload(safe_payload),
            metrics=metrics or {},
            message=str(safe_payload)[:200]
        )

        level = logging.WARNING if event_type in WARNING_EVENTS else logging.INFO
        self.logger.log(level, json.dumps(entry.model_dump(), default=str))

    def log_message(self,
                    trace_id: str,
                    direction: str,
                    message_type: str,
                    payload: Dict[str, Any],
                    metadata: Optional[Dict] = None):
        """
        Log one request/response exchange with trace correlation.

        Args:
            trace_id: Trace ID for correlation
            direction: "request" | "response" | "internal"
            message_type: Descriptive message type (e.g., "shard_read", "asset_put")
            payload: Message payload
            metadata: Additional metadata (e.g., path, status, timing)
        """
        record = {
            "trace_id": trace_id,
            "component": self.component.value,
            "direction": direction,
            "message_type": message_type,
            "metadata": redact(metadata or {}),
        }

        if not ENABLE_FULL_PAYLOAD_LOGGING:
            record["payload_hash"] = self.hash_payload(payload)
            self.logger.debug(json.dumps(record, default=str))
            return

        payload_str = json.dumps(redact(payload), default=str)
        payload_size = len(payload_str.encode('utf-8'))
        truncated = payload_size > MAX_PAYLOAD_SIZE_BYTES

        record.update({
            "content_size_bytes": payload_size,
            "truncated": truncated,
            f"{direction}_payload": payload_str[:MAX_PAYLOAD_SIZE_BYTES] if truncated else redact(payload),
        })
        self.logger.info(json.dumps(record, default=str))
