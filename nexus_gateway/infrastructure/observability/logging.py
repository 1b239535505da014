"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from nexus_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_payment_submission(
    request_id: str,
    user_id: str,
    accepted: bool,
    stage: str,
    rail: str | None,
    duration_ms: float,
) -> None:
    """Log structured payment outcome for analysis"""
    logging.info(
        "Payment submission completed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "payment_submission",
            "outcome": "accepted" if accepted else "rejected",
            "stage": stage,
            "rail": rail,
            "duration_ms": duration_ms,
        },
    )


def log_token_event(request_id: str, action: str, token_type: str | None, outcome: str) -> None:
    """Log card token lifecycle events. Never pass the token string itself."""
    logging.info(
        "Card token event",
        extra={
            "request_id": request_id,
            "step": "card_token",
            "action": action,
            "token_type": token_type,
            "outcome": outcome,
        },
    )
