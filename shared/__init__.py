"""
Shared utilities for the BaaS client.

This package aggregates common building blocks consumed by the client core:

- config: Client configuration via pydantic-settings
- logging: Structured logging with correlation context
- metrics: Prometheus metrics helpers
- errors: Canonical error types, tagged call results and responses
- retry: Caller-side retry decorator

Any cross-cutting logic should live here to avoid import cycles. Do not
import from baas_client into shared/.
"""
