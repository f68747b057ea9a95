"""
BaaS client core.

Every backend operation declares its own encryption and response shape, so
calls go through a per-operation contract instead of a uniform codec.

Structure:
- app.client: BaasClient facade wiring config, transport and cache.
- app.crypto: Symmetric cipher shared with the backend.
- app.contracts: Declarative endpoint contract table and registry.
- app.adapters: HTTP transport enforcing the contracts.
- app.normalization: Unwrap pipeline for JSON-in-string payloads.
- app.caching: Request coalescing and tag-based invalidation.
"""
