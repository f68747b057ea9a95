"""
Adapters package for the BaaS client.

Contains the HTTP transport that enforces endpoint contracts:

- Base URL, headers and per-call timeouts
- Request/response encryption as declared per operation
- Error handling that maps to shared errors

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .transport import RequestEnvelope, ResponseEnvelope, TransportClient

__all__ = ["RequestEnvelope", "ResponseEnvelope", "TransportClient"]
