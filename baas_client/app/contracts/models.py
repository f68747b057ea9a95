"""
Endpoint contract types and unwrap steps.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, Mapping, Optional, Tuple, Union

Accessor = Union[int, str]


class _Missing:
    """Marker for a value that could not be reached."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


class Encryption(str, Enum):
    """Body encryption for one direction of an operation."""

    NONE = "none"
    SYMMETRIC = "symmetric"


class OperationKind(str, Enum):
    """Queries are cached and coalesced; mutations never are."""

    QUERY = "query"
    MUTATION = "mutation"


class OnMiss(str, Enum):
    """What an Attempt step does when one of its steps misses."""

    KEEP_INPUT = "keep_input"
    RETURN_BODY = "return_body"
    DEFAULT = "default"


@dataclass(frozen=True)
class IndexInto:
    """Descend through list indices and/or object keys."""

    path: Tuple[Accessor, ...]

    def __post_init__(self):
        if isinstance(self.path, (int, str)):
            object.__setattr__(self, "path", (self.path,))
        else:
            object.__setattr__(self, "path", tuple(self.path))


@dataclass(frozen=True)
class ParseJsonString:
    """Parse the current string value as JSON."""


@dataclass(frozen=True)
class ExtractField:
    """Take a named field of the current object."""

    name: str


@dataclass(frozen=True)
class Wrap:
    """Wrap the current value in `depth` nested lists."""

    depth: int = 2


@dataclass(frozen=True)
class GuardResult:
    """Stop with `replacement` when the status at `path` exists and is not `expected`."""

    path: Tuple[Accessor, ...]
    expected: Any = "Success"
    replacement: Any = field(default_factory=lambda: [[]], compare=False)

    def __post_init__(self):
        object.__setattr__(self, "path", tuple(self.path))


@dataclass(frozen=True)
class FilterBy:
    """Keep list items whose `field` equals `equals`."""

    field: str
    equals: Any = True


@dataclass(frozen=True)
class Branch:
    """Sub-pipeline used by Project. Without a default a miss fails the whole Project step."""

    steps: Tuple[Any, ...]
    default: Any = field(default=MISSING, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "steps", tuple(self.steps))


@dataclass(frozen=True)
class Project:
    """Run each branch against the current value and collect results in a list."""

    branches: Tuple[Branch, ...]

    def __post_init__(self):
        object.__setattr__(self, "branches", tuple(self.branches))


@dataclass(frozen=True)
class Attempt:
    """
    Run `steps` as a unit and absorb a miss inside them.

    KEEP_INPUT carries on with the value the attempt received, RETURN_BODY
    stops the pipeline with the whole parsed body, DEFAULT carries on with a
    copy of `default`.
    """

    steps: Tuple[Any, ...]
    on_miss: OnMiss = OnMiss.KEEP_INPUT
    default: Any = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "steps", tuple(self.steps))
        object.__setattr__(self, "on_miss", OnMiss(self.on_miss))


UnwrapStep = Union[IndexInto, ParseJsonString, ExtractField, Wrap, GuardResult, FilterBy, Project, Attempt]

_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True)
class EndpointContract:
    """Immutable declaration of how one backend operation is called and unwrapped."""

    operation_id: str
    path: str
    method: str = "POST"
    request_encryption: Encryption = Encryption.NONE
    response_encryption: Encryption = Encryption.NONE
    unwrap_pipeline: Tuple[UnwrapStep, ...] = ()
    provides_tags: FrozenSet[str] = frozenset()
    invalidates_tags: FrozenSet[str] = frozenset()
    kind: OperationKind = OperationKind.QUERY
    required_params: Tuple[str, ...] = ()
    # Fields encrypted on their own before the body is serialized
    encrypted_fields: Tuple[str, ...] = ()
    # Parameter whose value picks the backend path; unknown values use `path`
    route_param: Optional[str] = None
    path_variants: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self):
        if not self.operation_id:
            raise ValueError("operation_id must not be empty")
        method = self.method.upper()
        if method not in _METHODS:
            raise ValueError(f"{self.operation_id}: unsupported method {self.method}")
        if method == "GET" and self.request_encryption is Encryption.SYMMETRIC:
            raise ValueError(f"{self.operation_id}: GET requests carry no body to encrypt")

        variants = self.path_variants
        if isinstance(variants, Mapping):
            variants = variants.items()
        variants = tuple((str(value), path) for value, path in variants)
        if variants and not self.route_param:
            raise ValueError(f"{self.operation_id}: path variants need a route_param")
        for path in (self.path,) + tuple(path for _, path in variants):
            if not path.startswith("/"):
                raise ValueError(f"{self.operation_id}: path must start with '/'")

        object.__setattr__(self, "method", method)
        object.__setattr__(self, "unwrap_pipeline", tuple(self.unwrap_pipeline))
        object.__setattr__(self, "provides_tags", frozenset(self.provides_tags))
        object.__setattr__(self, "invalidates_tags", frozenset(self.invalidates_tags))
        object.__setattr__(self, "required_params", tuple(self.required_params))
        object.__setattr__(self, "encrypted_fields", tuple(self.encrypted_fields))
        object.__setattr__(self, "path_variants", variants)

    def resolve_path(self, params: Optional[Mapping[str, Any]] = None) -> str:
        """Backend path for a call with `params`."""
        if self.route_param and params:
            value = params.get(self.route_param)
            if value is not None:
                for candidate, path in self.path_variants:
                    if candidate == str(value):
                        return path
        return self.path

    @property
    def paths(self) -> FrozenSet[str]:
        """Every path this operation may be sent to."""
        return frozenset({self.path}) | frozenset(path for _, path in self.path_variants)

    @property
    def encrypts_request(self) -> bool:
        return self.request_encryption is Encryption.SYMMETRIC

    @property
    def encrypts_response(self) -> bool:
        return self.response_encryption is Encryption.SYMMETRIC

    @property
    def is_mutation(self) -> bool:
        return self.kind is OperationKind.MUTATION
