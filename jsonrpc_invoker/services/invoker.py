# jsonrpc_invoker/services/invoker.py

"""JSON-RPC Invoker

Builds JSON-RPC 2.0 requests, submits them as HTTP POSTs through an injected
httpx.AsyncClient and discriminates the response body into an error or a
typed result.

Every request uses id 0. The invoker does no request correlation of its own:
when several calls share one client, each response is paired with its request
by httpx (one response per exchange), never by the id field.
"""

from typing import Any, Callable, Dict, Optional
import asyncio
import logging
from functools import partial

import httpx
from pydantic import HttpUrl, TypeAdapter, ValidationError

from jsonrpc_invoker.core.config import settings
from jsonrpc_invoker.core.logging import call_context
from jsonrpc_invoker.core.exceptions import (
    ConfigurationError,
    InvalidURLError,
    RequestBuildError,
    RequestEncodingError,
)
from jsonrpc_invoker.models.jsonrpc import (
    EMPTY_RESPONSE_MESSAGE,
    SENTINEL_CODE,
    AnyResult,
    InvocationResult,
    JSONRPCError,
    JSONRPCErrorResponse,
    JSONRPCRequest,
    JSONRPCResultResponse,
)

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Request cancelled."

Encoder = Callable[[JSONRPCRequest], bytes]
Completion = Callable[[Optional[JSONRPCError], Any], None]
Dispatch = Callable[[Callable[[], None]], Any]

_HTTP_URL = TypeAdapter(HttpUrl)


def _default_encoder(envelope: JSONRPCRequest) -> bytes:
    return envelope.model_dump_json().encode("utf-8")


def _validate_url(url: str) -> None:
    try:
        _HTTP_URL.validate_python(url)
    except ValidationError as e:
        raise InvalidURLError(url, reason=e.errors()[0]["msg"]) from e


def _describe_transport_error(error: Exception) -> str:
    # Some httpx errors (e.g. bare timeouts) carry no message
    return str(error) or type(error).__name__


def invocation_request(
    url: str,
    method: str,
    params: Any,
    *,
    encoder: Optional[Encoder] = None,
    headers: Optional[Dict[str, str]] = None
) -> httpx.Request:
    """
    Build the HTTP POST request for a JSON-RPC call

    Args:
        url: Absolute http(s) endpoint URL
        method: JSON-RPC method name
        params: Any value pydantic can serialize to JSON
        encoder: Optional override for envelope serialization
        headers: Extra headers merged over the defaults

    Returns:
        httpx.Request whose body is {"jsonrpc": "2.0", "id": 0, "method": ..., "params": ...}

    Raises:
        InvalidURLError: If url is not an absolute http(s) URL
        ConfigurationError: If method is empty
        RequestEncodingError: If params cannot be serialized
    """
    _validate_url(url)

    if not isinstance(method, str) or not method:
        raise ConfigurationError(f"Invalid JSON-RPC method name: {method!r}")

    envelope = JSONRPCRequest(method=method, params=params)
    try:
        body = (encoder or _default_encoder)(envelope)
    except (TypeError, ValueError) as e:
        raise RequestEncodingError(
            f"Failed to encode params for {method}: {e}",
            details={"method": method}
        ) from e

    request_headers: Dict[str, str] = {}
    if settings.CONTENT_TYPE:
        request_headers["Content-Type"] = settings.CONTENT_TYPE
    if headers:
        request_headers.update(headers)

    try:
        return httpx.Request("POST", url, content=body, headers=request_headers)
    except httpx.InvalidURL as e:
        raise InvalidURLError(url, reason=str(e)) from e


def parse_response(body: Optional[bytes], result_type: Any = AnyResult) -> InvocationResult:
    """
    Discriminate a response body into an error or a typed result

    Order matters: the error shape is tried before the result shape, so a body
    carrying both "error" and "result" is reported as an error.

    Args:
        body: Raw HTTP response body (None or b"" when the server sent nothing)
        result_type: Type the "result" member is validated against

    Returns:
        InvocationResult with exactly one of error/result set
    """
    if not body:
        return InvocationResult.failure(EMPTY_RESPONSE_MESSAGE)

    try:
        error_response = JSONRPCErrorResponse.model_validate_json(body)
    except ValidationError as e:
        logger.debug(f"Body is not a JSON-RPC error response: {e.error_count()} validation error(s)")
    else:
        return InvocationResult(error=error_response.error)

    try:
        result_response = JSONRPCResultResponse[result_type].model_validate_json(body)
    except ValidationError as e:
        logger.debug(f"Body is not a JSON-RPC result response: {e.error_count()} validation error(s)")
    else:
        return InvocationResult.success(result_response.result)

    if isinstance(body, bytes):
        text = body.decode("utf-8", errors="replace")
    else:
        text = body
    return InvocationResult.failure(text)


async def invoke(
    client: httpx.AsyncClient,
    url: str,
    method: str,
    params: Any,
    result_type: Any = AnyResult,
    *,
    encoder: Optional[Encoder] = None,
    headers: Optional[Dict[str, str]] = None
) -> InvocationResult:
    """
    Invoke a JSON-RPC method once and return its outcome

    Never raises for request-building, transport or parse failures; each of
    them is returned as an error with code 0. A request that cannot be built
    is reported without touching the network. No retries.

    Args:
        client: Transport used to send the request
        url: Endpoint URL
        method: JSON-RPC method name
        params: Method params
        result_type: Expected type of the "result" member

    Returns:
        InvocationResult
    """
    try:
        request = invocation_request(url, method, params, encoder=encoder, headers=headers)
    except RequestBuildError as e:
        logger.error(f"Could not build JSON-RPC request: {e.message}", extra=call_context(method, url))
        return InvocationResult.failure(e.message)

    logger.debug(f"Invoking JSON-RPC method {method}", extra=call_context(method, url))

    try:
        response = await client.send(request)
    except (httpx.HTTPError, RuntimeError) as e:
        # httpx raises RuntimeError for a client that has been closed
        logger.warning(
            f"Transport error invoking {method}: {type(e).__name__}: {e}",
            extra=call_context(method, url)
        )
        return InvocationResult.failure(_describe_transport_error(e))

    if response.is_error:
        logger.warning(
            f"JSON-RPC endpoint returned HTTP {response.status_code} for {method}",
            extra=call_context(method, url, status=response.status_code)
        )

    outcome = parse_response(response.content, result_type)
    if outcome.error is not None:
        logger.info(
            f"JSON-RPC call {method} failed: {outcome.error.message}",
            extra=call_context(method, url, code=outcome.error.code)
        )
    return outcome


def invocation_task(
    client: httpx.AsyncClient,
    url: str,
    method: str,
    params: Any,
    completion: Completion,
    *,
    result_type: Any = AnyResult,
    dispatch: Optional[Dispatch] = None,
    encoder: Optional[Encoder] = None,
    headers: Optional[Dict[str, str]] = None
) -> "asyncio.Task[InvocationResult]":
    """
    Start an invocation in the background and report it through a callback

    completion(error, result) fires exactly once per task, including when the
    task is cancelled (error "Request cancelled."). Without a dispatch it runs
    on the event loop that created the task; pass e.g. another loop's
    call_soon_threadsafe or an executor's submit to deliver elsewhere.

    Must be called from a running event loop.

    Returns:
        The asyncio.Task running the invocation
    """
    loop = asyncio.get_running_loop()

    async def run() -> InvocationResult:
        try:
            return await invoke(
                client, url, method, params, result_type,
                encoder=encoder, headers=headers
            )
        except Exception as e:
            logger.exception(f"Unexpected error invoking {method}", extra=call_context(method, url))
            return InvocationResult.failure(str(e) or type(e).__name__)

    def on_done(task: "asyncio.Task[InvocationResult]") -> None:
        if task.cancelled():
            logger.info(f"JSON-RPC call {method} cancelled", extra=call_context(method, url))
            outcome = InvocationResult.failure(CANCELLED_MESSAGE)
        elif task.exception() is not None:
            # Only BaseExceptions such as KeyboardInterrupt get past run()
            outcome = InvocationResult.failure(_describe_transport_error(task.exception()))
        else:
            outcome = task.result()

        deliver = partial(completion, outcome.error, outcome.result)
        if dispatch is None:
            deliver()
        else:
            dispatch(deliver)

    task = loop.create_task(run(), name=f"jsonrpc:{method}")
    task.add_done_callback(on_done)
    return task


class JSONRPCInvoker:
    """Invoker bound to one JSON-RPC endpoint"""

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        """
        Initialize invoker

        Args:
            url: Endpoint URL
            client: Optional transport; when omitted one is created on entry and
                closed on exit. An injected client is never closed here.
            timeout: Timeout for the created client (defaults to settings)
            headers: Extra headers sent with every request
        """
        self.url = url
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self.headers = headers
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self):
        """Context manager entry - creates the HTTP client if none was injected"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": settings.USER_AGENT}
            )
            logger.debug(f"Created HTTP client for {self.url} (timeout={self.timeout}s)")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - closes the client it created"""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("JSONRPCInvoker has no HTTP client; use it with 'async with'")
        return self._client

    async def call(self, method: str, params: Any, result_type: Any = AnyResult) -> InvocationResult:
        """Invoke a method and wait for its outcome"""
        return await invoke(
            self.client, self.url, method, params, result_type,
            headers=self.headers
        )

    def submit(
        self,
        method: str,
        params: Any,
        completion: Completion,
        result_type: Any = AnyResult,
        dispatch: Optional[Dispatch] = None
    ) -> "asyncio.Task[InvocationResult]":
        """Invoke a method in the background, reporting through completion"""
        return invocation_task(
            self.client, self.url, method, params, completion,
            result_type=result_type, dispatch=dispatch, headers=self.headers
        )
