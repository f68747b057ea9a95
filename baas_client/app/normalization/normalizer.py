"""
Response normalization.

Backend payloads nest JSON documents inside string fields, sometimes several
levels deep. An unwrap pipeline describes how to dig the useful value out.

Rules:
- The body is parsed once; if it is not JSON it is returned unchanged.
- A missing index or field stops the pipeline and returns the value the
  failing step received, unless an Attempt step absorbs the miss.
- A ParseJsonString step that meets malformed JSON abandons the whole
  pipeline and returns the original body text unchanged.
- Shape mismatches are never errors.
"""

import copy
from collections.abc import Mapping
from typing import Any, Optional, Sequence, Tuple

from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..contracts.models import (
    MISSING,
    Attempt,
    ExtractField,
    FilterBy,
    GuardResult,
    IndexInto,
    OnMiss,
    ParseJsonString,
    Project,
    Wrap,
)
from ..serialization import parse_json

_DONE = "done"
_MISSED = "missed"
_HALTED = "halted"


class _ParseFailure(Exception):
    """A ParseJsonString step met a string that is not JSON."""


def _same(left: Any, right: Any) -> bool:
    # True must not match 1
    if isinstance(left, bool) or isinstance(right, bool):
        return left is right
    return left == right


def _access(value: Any, accessor: Any) -> Any:
    if isinstance(value, list):
        if isinstance(accessor, str) and accessor.isdigit():
            accessor = int(accessor)
        if isinstance(accessor, int) and not isinstance(accessor, bool) and 0 <= accessor < len(value):
            return value[accessor]
        return MISSING

    if isinstance(value, Mapping):
        if accessor in value:
            return value[accessor]
        # Array-like objects such as {"0": {...}}
        if isinstance(accessor, int) and str(accessor) in value:
            return value[str(accessor)]
        return MISSING

    return MISSING


def _descend(value: Any, path: Sequence[Any]) -> Any:
    for accessor in path:
        value = _access(value, accessor)
        if value is MISSING:
            return MISSING
    return value


def _run_steps(value: Any, steps: Sequence[Any], root: Any) -> Tuple[Any, str]:
    for step in steps:
        if isinstance(step, IndexInto):
            reached = _descend(value, step.path)
            if reached is MISSING:
                return value, _MISSED
            value = reached

        elif isinstance(step, ParseJsonString):
            if isinstance(value, str):
                try:
                    value = parse_json(value)
                except ValueError as exc:
                    raise _ParseFailure(str(exc)) from exc

        elif isinstance(step, ExtractField):
            if not isinstance(value, Mapping) or step.name not in value:
                return value, _MISSED
            value = value[step.name]

        elif isinstance(step, Wrap):
            for _ in range(step.depth):
                value = [value]

        elif isinstance(step, GuardResult):
            status = _descend(value, step.path)
            if status is not MISSING and status is not None and not _same(status, step.expected):
                return copy.deepcopy(step.replacement), _HALTED

        elif isinstance(step, FilterBy):
            if isinstance(value, list):
                value = [
                    item for item in value
                    if isinstance(item, Mapping) and _same(item.get(step.field, MISSING), step.equals)
                ]

        elif isinstance(step, Project):
            projected = []
            for branch in step.branches:
                result, status = _run_steps(value, branch.steps, root)
                if status == _MISSED:
                    if branch.default is MISSING:
                        return value, _MISSED
                    result = copy.deepcopy(branch.default)
                projected.append(result)
            value = projected

        elif isinstance(step, Attempt):
            result, status = _run_steps(value, step.steps, root)
            if status == _HALTED:
                return result, _HALTED
            if status == _DONE:
                value = result
            elif step.on_miss is OnMiss.RETURN_BODY:
                return root, _HALTED
            elif step.on_miss is OnMiss.DEFAULT:
                value = copy.deepcopy(step.default)

        else:
            raise TypeError(f"Unsupported unwrap step: {step!r}")

    return value, _DONE


def _normalize(body: Any, pipeline: Sequence[Any]) -> Tuple[Any, Optional[str]]:
    """Return (value, fallback reason or None)."""
    if isinstance(body, str):
        try:
            value = parse_json(body)
        except ValueError:
            return body, "unparseable_body"
    else:
        value = body

    try:
        result, status = _run_steps(value, pipeline, value)
    except _ParseFailure:
        return body, "malformed_json_string"

    if status == _MISSED:
        return result, "missing_path"
    return result, None


def normalize(body: Any, pipeline: Sequence[Any]) -> Any:
    """Apply `pipeline` to a response body and return the unwrapped value."""
    value, _ = _normalize(body, pipeline)
    return value


class ResponseNormalizer:
    """Runs unwrap pipelines and reports fallbacks through logs and metrics."""

    def __init__(self, metrics: Optional[MetricsCollector] = None):
        self.metrics = metrics
        self.logger = get_logger("baas_client.normalizer")

    def normalize(self, body: Any, pipeline: Sequence[Any], operation_id: str = "") -> Any:
        value, reason = _normalize(body, pipeline)

        if reason == "missing_path":
            self.logger.debug("Unwrap stopped at missing path", operation_id=operation_id)
        elif reason is not None:
            self.logger.warning(
                "Normalization fell back to raw body",
                operation_id=operation_id,
                reason=reason,
                body_length=len(body) if isinstance(body, str) else None
            )
            if self.metrics:
                self.metrics.record_normalization_fallback(operation_id or "unknown")

        return value
