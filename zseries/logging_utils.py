import logging
import json
import os
import hashlib
import time
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from .models import LogEntry, ComponentType, EventType
from .config import get_zseries_config


def _default_level() -> str:
    level = os.getenv("LOG_LEVEL") or get_zseries_config().get("logging", {}).get("level", "INFO")
    return level.upper()


class ZSeriesJSONFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super(ZSeriesJSONFormatter, self).add_fields(log_record, record, message_dict)
        if not log_record.get('timestamp'):
            log_record['timestamp'] = time.time()
        if log_record.get('level'):
            log_record['level'] = log_record['level'].upper()
        else:
            log_record['level'] = record.levelname


def get_logger(name: str, level: Optional[str] = None):
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = ZSeriesJSONFormatter('%(timestamp)s %(level)s %(name)s %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level or _default_level())
    # Prevent duplicate logs if propagation is on
    logger.propagate = False
    return logger


class StructuredLogger:
    def __init__(self, component: ComponentType):
        self.logger = get_logger(f"zseries.{component.value}")
        self.component = component

    def hash_payload(self, payload: Any) -> str:
        """Create a hash of the payload for audit."""
        dumped = json.dumps(payload, sort_keys=True, default=str)
        return hashlib.md5(dumped.encode()).hexdigest()[:16]

    def log_event(self,
                  trace_id: str,
                  event_type: EventType,
                  payload: Any,
                  metrics: Dict[str, Any] = None,
                  level: int = logging.INFO):

        if not self.logger.isEnabledFor(level):
            return

        entry = LogEntry(
            trace_id=trace_id,
            component=self.component,
            event_type=event_type,
            payload_hash=self.hash_payload(payload),
            metrics=metrics or {},
            message=str(payload)[:200]  # Log a snippet for debug
        )

        self.logger.log(level, json.dumps(entry.model_dump(), default=str))

    def debug_event(self,
                    trace_id: str,
                    event_type: EventType,
                    payload: Any,
                    metrics: Dict[str, Any] = None):
        self.log_event(trace_id, event_type, payload, metrics, level=logging.DEBUG)
