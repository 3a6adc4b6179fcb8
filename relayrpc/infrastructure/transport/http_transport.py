"""Concrete implementation of the transport interfaces using httpx.

Calls are sent to ``<base><service>/<endpoint>/v<version>/``. The request
payload travels as JSON in the ``input_json`` field, next to the auxiliary
arguments (query string for GET, form body for POST). The API wraps its
result in a top-level ``response`` object and reports its result code in the
``x-eresult`` header.
"""

import json
import logging
from typing import Mapping, Optional, Type

import httpx

from relayrpc import __version__
from relayrpc.domain.interfaces.transport import ResponseT, ServiceInterface, TransportClient
from relayrpc.domain.models.common import HttpMethod, ServiceName
from relayrpc.domain.models.errors import AttemptCancelledError, ResponseFormatError, TransportError
from relayrpc.domain.models.invocation import RequestPayload, WebApiResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 90.0
RESULT_HEADER = "x-eresult"
RESULT_OK = 1
USER_AGENT = f"relayrpc/{__version__}"


def _normalize_base_address(base_address: str) -> str:
    if not base_address:
        raise ValueError("base_address must not be empty.")
    return base_address if base_address.endswith("/") else base_address + "/"


class HttpServiceInterface(ServiceInterface):
    """A per-call handle owning one ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_address: str,
        service: ServiceName,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initializes the interface.

        Args:
            base_address: API base URL.
            service: Interface name, e.g. 'ITwoFactorService'.
            timeout: Per-request timeout in seconds.
            http_transport: Optional httpx transport (e.g. ``httpx.MockTransport`` in tests).
        """
        if not service:
            raise ValueError("service must not be empty.")
        self.base_address = _normalize_base_address(base_address)
        self.service = service
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_address,
            timeout=timeout,
            transport=http_transport,
            headers={"User-Agent": USER_AGENT},
        )

    @property
    def timeout(self) -> float:
        return self._timeout

    @timeout.setter
    def timeout(self, value: float) -> None:
        if value <= 0:
            raise ValueError(f"timeout must be positive, got {value}.")
        self._timeout = value
        self._client.timeout = httpx.Timeout(value)

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def call(
        self,
        method: HttpMethod,
        endpoint: str,
        request: RequestPayload,
        response_type: Type[ResponseT],
        arguments: Optional[Mapping[str, str]] = None,
        version: int = 1,
    ) -> WebApiResponse[ResponseT]:
        """Sends one request and decodes its ``response`` object into ``response_type``."""
        method = HttpMethod(method)
        path = f"{self.service}/{endpoint}/v{version}/"
        fields = dict(arguments or {})
        fields["input_json"] = json.dumps(request.to_dict())

        try:
            if method is HttpMethod.GET:
                http_response = await self._client.get(path, params=fields)
            else:
                http_response = await self._client.post(path, data=fields)
            http_response.raise_for_status()
        except httpx.TimeoutException as e:
            raise AttemptCancelledError(f"{method} {path} timed out after {self._timeout}s") from e
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            raise TransportError(f"{method} {path} returned HTTP {status_code}", status_code=status_code) from e
        except httpx.RequestError as e:
            raise TransportError(f"{method} {path} failed: {type(e).__name__}: {e}") from e

        return WebApiResponse(
            body=self._decode_body(http_response, response_type, path),
            result=self._decode_result(http_response, path),
        )

    @staticmethod
    def _decode_body(http_response: httpx.Response, response_type: Type[ResponseT], path: str) -> ResponseT:
        try:
            data = http_response.json()
        except ValueError as e:
            raise ResponseFormatError(f"{path} returned a body that is not JSON") from e
        if not isinstance(data, dict) or "response" not in data:
            raise ResponseFormatError(f"{path} returned JSON without a 'response' object")
        return response_type.from_dict(data["response"])

    @staticmethod
    def _decode_result(http_response: httpx.Response, path: str) -> int:
        raw = http_response.headers.get(RESULT_HEADER)
        if raw is None:
            return RESULT_OK
        try:
            result = int(raw)
        except ValueError as e:
            raise ResponseFormatError(f"{path} returned an invalid {RESULT_HEADER} header: {raw!r}") from e
        if result != RESULT_OK:
            logger.debug(f"{path} completed with result code {result}")
        return result

    async def aclose(self) -> None:
        await self._client.aclose()


class HttpTransportClient(TransportClient):
    """Creates ``HttpServiceInterface`` handles against one API host."""

    def __init__(
        self,
        base_address: str,
        default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_address = _normalize_base_address(base_address)
        self.default_timeout = default_timeout
        self.http_transport = http_transport
        logger.debug(f"HttpTransportClient initialized for {self._base_address}")

    @property
    def base_address(self) -> str:
        return self._base_address

    def get_interface(self, service: ServiceName) -> HttpServiceInterface:
        return HttpServiceInterface(
            self._base_address,
            service,
            timeout=self.default_timeout,
            http_transport=self.http_transport,
        )
