"""
Endpoint contracts.

One explicit entry per backend operation: path, method, encryption per
direction, unwrap pipeline and cache tags. Entries are authored by hand and
never inferred from naming.
"""

from .models import (
    Attempt,
    Branch,
    EndpointContract,
    Encryption,
    ExtractField,
    FilterBy,
    GuardResult,
    IndexInto,
    OnMiss,
    OperationKind,
    ParseJsonString,
    Project,
    Wrap,
)
from .registry import ContractRegistry, default_registry

__all__ = [
    "Attempt",
    "Branch",
    "ContractRegistry",
    "EndpointContract",
    "Encryption",
    "ExtractField",
    "FilterBy",
    "GuardResult",
    "IndexInto",
    "OnMiss",
    "OperationKind",
    "ParseJsonString",
    "Project",
    "Wrap",
    "default_registry",
]
