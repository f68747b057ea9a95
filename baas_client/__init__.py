"""
BaaS client package.

Async, contract-driven client for the legacy BaaS backend
(/baasHome/*, /baasContent/*).
"""

from baas_client.app.client import BaasClient

__all__ = ["BaasClient"]
