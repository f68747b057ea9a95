"""
Read-only registry over endpoint contracts.
"""

from types import MappingProxyType
from collections.abc import Mapping
from typing import Any, Dict, Iterable, Iterator, Optional

from shared.errors import UnknownOperation, ValidationError
from shared.logging import get_logger

from .models import EndpointContract
from .table import DEFAULT_CONTRACTS


class ContractRegistry:
    """Lookup table keyed by operation id. Immutable once built."""

    def __init__(self, contracts: Iterable[EndpointContract]):
        table: Dict[str, EndpointContract] = {}
        for contract in contracts:
            if contract.operation_id in table:
                raise ValueError(f"Duplicate operation id: {contract.operation_id}")
            table[contract.operation_id] = contract

        self._contracts: Mapping[str, EndpointContract] = MappingProxyType(table)
        self.logger = get_logger("baas_client.contracts")

    def lookup(self, operation_id: str) -> EndpointContract:
        """Return the contract for `operation_id` or raise UnknownOperation."""
        contract = self._contracts.get(operation_id)
        if contract is None:
            self.logger.error("Unknown operation", operation_id=operation_id)
            raise UnknownOperation(operation_id)
        return contract

    def validate_params(self, contract: EndpointContract, params: Optional[Mapping[str, Any]]) -> None:
        """Raise ValidationError when a required parameter is absent or None."""
        if params is not None and not isinstance(params, Mapping):
            raise ValidationError(
                "Parameters must be a mapping",
                details={"operation_id": contract.operation_id, "type": type(params).__name__}
            )

        supplied = params or {}
        missing = [name for name in contract.required_params if supplied.get(name) is None]
        if missing:
            raise ValidationError(
                f"Missing required parameters for {contract.operation_id}",
                details={"operation_id": contract.operation_id, "missing": missing}
            )

    def tagged_with(self, tag: str) -> Iterator[EndpointContract]:
        """Contracts that provide `tag`."""
        return (c for c in self._contracts.values() if tag in c.provides_tags)

    def __contains__(self, operation_id: object) -> bool:
        return operation_id in self._contracts

    def __iter__(self) -> Iterator[EndpointContract]:
        return iter(self._contracts.values())

    def __len__(self) -> int:
        return len(self._contracts)


_default_registry: Optional[ContractRegistry] = None


def default_registry() -> ContractRegistry:
    """Registry over the built-in contract table, built once per process."""
    global _default_registry
    if _default_registry is None:
        _default_registry = ContractRegistry(DEFAULT_CONTRACTS)
    return _default_registry
