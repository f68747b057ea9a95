"""
HTTP transport for the BaaS backend.

Each call is shaped by its endpoint contract: the request body is either
canonical JSON or the Base64 ciphertext of that JSON, and the response body
is decrypted only when the contract says it is encrypted. Fields such as
passwords may be encrypted on their own before the body is built, and some
operations pick their path from a request parameter.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import httpx

from shared.errors import (
    BaasClientError,
    DecodeError,
    HttpStatusError,
    NetworkError,
    TransportDecryptError,
)
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..contracts.models import EndpointContract
from ..contracts.registry import ContractRegistry, default_registry
from ..crypto.cipher import CipherCodec
from ..normalization.normalizer import ResponseNormalizer
from ..serialization import canonical_params

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain"


@dataclass
class RequestEnvelope:
    """Parameters of one call. Never persisted."""

    operation_id: str
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def canonical_body(self) -> str:
        return canonical_params(self.params)


@dataclass
class ResponseEnvelope:
    """One response at each processing stage."""

    operation_id: str
    status_code: int
    raw: str
    decrypted: Optional[str] = None
    normalized: Any = None
    duration_seconds: float = 0.0

    @property
    def body(self) -> str:
        """Text fed to the normalizer."""
        return self.decrypted if self.decrypted is not None else self.raw


class TransportClient:
    """Issues backend calls according to the contract table."""

    def __init__(
        self,
        base_url: str,
        codec: CipherCodec,
        registry: Optional[ContractRegistry] = None,
        timeout: float = 30.0,
        accept_header: str = "application/json;charset=utf-8",
        session_token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None,
        normalizer: Optional[ResponseNormalizer] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.codec = codec
        self.registry = registry or default_registry()
        self.timeout = timeout
        self.accept_header = accept_header
        self.session_token = session_token
        self.metrics = metrics
        self.normalizer = normalizer or ResponseNormalizer(metrics)
        self.logger = get_logger("baas_client.transport")

        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get the shared HTTP client, creating it on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
            self._owns_client = True
        return self._client

    def _headers(self, contract: EndpointContract) -> Dict[str, str]:
        headers = {"Accept": self.accept_header}
        if contract.method != "GET":
            headers["Content-Type"] = TEXT_CONTENT_TYPE if contract.encrypts_request else JSON_CONTENT_TYPE
        if self.session_token:
            headers["Authorization"] = f"Bearer {self.session_token}"
        return headers

    def wire_params(self, contract: EndpointContract, request: RequestEnvelope) -> Dict[str, Any]:
        """Parameters with each of the contract's encrypted fields replaced by its ciphertext."""
        params = dict(request.params)
        for name in contract.encrypted_fields:
            if params.get(name) is not None:
                params[name] = self.codec.encrypt(str(params[name]))
        return params

    def encode_request(self, contract: EndpointContract, request: RequestEnvelope) -> str:
        """Body text exactly as it goes on the wire."""
        if contract.encrypted_fields:
            body = canonical_params(self.wire_params(contract, request))
        else:
            body = request.canonical_body
        if contract.encrypts_request:
            return self.codec.encrypt(body)
        return body

    async def send(
        self,
        operation_id: str,
        params: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Call `operation_id` and return its normalized result."""
        envelope = await self.exchange(operation_id, params, timeout=timeout)
        return envelope.normalized

    async def exchange(
        self,
        operation_id: str,
        params: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> ResponseEnvelope:
        """
        Call `operation_id` and return the full response envelope.

        Raises:
            UnknownOperation: operation is not in the contract table
            ValidationError: a required parameter is missing
            NetworkError: connection failure or timeout
            HttpStatusError: non-2xx response
            TransportDecryptError: encrypted response did not decrypt
        """
        contract = self.registry.lookup(operation_id)
        self.registry.validate_params(contract, params)

        request = RequestEnvelope(operation_id=operation_id, params=dict(params or {}))
        path = contract.resolve_path(request.params)
        url = f"{self.base_url}{path}"
        effective_timeout = timeout if timeout is not None else self.timeout
        log = self.logger.bind(operation_id=operation_id, path=path, method=contract.method)

        request_kwargs: Dict[str, Any] = {
            "headers": self._headers(contract),
            "timeout": httpx.Timeout(effective_timeout),
        }
        if contract.method == "GET":
            request_kwargs["params"] = self.wire_params(contract, request)
        else:
            request_kwargs["content"] = self.encode_request(contract, request).encode("utf-8")

        log.debug(
            "Sending backend request",
            encrypted_request=contract.encrypts_request,
            param_keys=sorted(request.params),
        )

        start = time.perf_counter()
        try:
            response = await self._get_client().request(contract.method, url, **request_kwargs)
        except httpx.TimeoutException as exc:
            duration = time.perf_counter() - start
            log.error("Backend request timed out", timeout=effective_timeout, error=str(exc))
            self._record(operation_id, contract.method, "timeout", duration)
            raise self._failed(NetworkError(
                f"Request to {path} timed out after {effective_timeout}s",
                details={"operation_id": operation_id, "path": path},
                timed_out=True,
            )) from exc
        except httpx.RequestError as exc:
            duration = time.perf_counter() - start
            log.error("Backend request failed", error=str(exc), error_type=type(exc).__name__)
            self._record(operation_id, contract.method, "network_error", duration)
            raise self._failed(NetworkError(
                f"Request to {path} failed: {exc}",
                details={"operation_id": operation_id, "path": path},
            )) from exc

        duration = time.perf_counter() - start

        if not response.is_success:
            log.error(
                "Backend request returned error status",
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            self._record(operation_id, contract.method, f"http_{response.status_code}", duration)
            raise self._failed(HttpStatusError(
                response.status_code,
                response.text,
                details={"operation_id": operation_id, "path": path},
            ))

        envelope = ResponseEnvelope(
            operation_id=operation_id,
            status_code=response.status_code,
            raw=response.text,
            duration_seconds=duration,
        )

        if contract.encrypts_response:
            try:
                envelope.decrypted = self.codec.decrypt(envelope.raw)
            except DecodeError as exc:
                log.error("Response decryption failed", reason=exc.details.get("reason"))
                self._record(operation_id, contract.method, "decrypt_error", duration)
                raise self._failed(TransportDecryptError(
                    f"Response for {operation_id} could not be decrypted",
                    details={"operation_id": operation_id, "reason": exc.details.get("reason")},
                )) from exc

        envelope.normalized = self.normalizer.normalize(envelope.body, contract.unwrap_pipeline, operation_id)

        self._record(operation_id, contract.method, "ok", duration)
        log.info(
            "Backend request completed",
            status_code=response.status_code,
            encrypted_response=contract.encrypts_response,
            duration_ms=round(duration * 1000, 2),
        )
        return envelope

    def _record(self, operation_id: str, method: str, outcome: str, duration: float):
        if self.metrics:
            self.metrics.record_transport_request(operation_id, method, outcome, duration)

    def _failed(self, error: BaasClientError) -> BaasClientError:
        if self.metrics:
            self.metrics.record_error(error.code)
        return error

    async def aclose(self):
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TransportClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
