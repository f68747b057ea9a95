"""
Shared logging configuration for the BaaS client.
"""

import sys
import structlog
import logging
import uuid
import time
from typing import Any, Dict, Optional
from contextvars import ContextVar

# Context variables for correlation IDs
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
operation_id_var: ContextVar[Optional[str]] = ContextVar('operation_id', default=None)
customer_id_var: ContextVar[Optional[str]] = ContextVar('customer_id', default=None)


def configure_logging(service_name: str = "baas_client", log_level: str = "info") -> None:
    """Configure structured logging for the client."""

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_service_context,
            add_correlation_context,
            add_timestamp,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )
    logging.getLogger(service_name).setLevel(getattr(logging, log_level.upper()))


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to log events."""
    # Logger names look like "baas_client.transport"
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        service_name, component = logger_name.split(".", 1)
        event_dict["service"] = service_name
        event_dict["component"] = component

    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add correlation context to log events."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    operation_id = operation_id_var.get()
    if operation_id and "operation_id" not in event_dict:
        event_dict["operation_id"] = operation_id

    customer_id = customer_id_var.get()
    if customer_id:
        event_dict["customer_id"] = customer_id

    return event_dict


def add_timestamp(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add high-precision timestamp to log events."""
    event_dict["timestamp"] = time.time()
    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set request ID in context."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def set_call_context(operation_id: Optional[str] = None, customer_id: Optional[str] = None):
    """Set per-call context in logging."""
    if operation_id:
        operation_id_var.set(operation_id)
    if customer_id:
        customer_id_var.set(customer_id)


def clear_context():
    """Clear all context variables."""
    request_id_var.set(None)
    operation_id_var.set(None)
    customer_id_var.set(None)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
