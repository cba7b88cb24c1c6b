# jsonrpc_invoker/models/jsonrpc.py

"""JSON-RPC 2.0 Envelope Models

Pydantic models for the request envelope sent to the server and the two
response shapes read back from it. Params and result payloads are generic
and treated opaquely: pydantic serializes/validates whatever type the caller
binds at the call site.

Response envelopes validate strictly: "42" is not an integer code and "0" is
not an integer id. Such bodies match neither shape.
"""

from typing import Annotated, Any, Generic, Literal, Optional, TypeVar
from pydantic import AfterValidator, BaseModel, ConfigDict

from jsonrpc_invoker.core.exceptions import JSONRPCCallError

ParamsT = TypeVar("ParamsT")
ResultT = TypeVar("ResultT")

JSONRPC_VERSION = "2.0"

# Every request carries the same id; responses are matched by the transport
# (one response per HTTP exchange), never by inspecting the id.
PLACEHOLDER_ID = 0

# Code used for failures synthesized locally (transport, empty body, parse).
SENTINEL_CODE = 0
EMPTY_RESPONSE_MESSAGE = "Empty server response."


def _reject_null(value: Any) -> Any:
    if value is None:
        raise ValueError("result is null")
    return value


# Default result type: any JSON value except null. Callers that accept a null
# result ask for it explicitly, e.g. Optional[int].
AnyResult = Annotated[Any, AfterValidator(_reject_null)]


class JSONRPCRequest(BaseModel, Generic[ParamsT]):
    """JSON-RPC 2.0 Request"""
    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: int = PLACEHOLDER_ID
    method: str
    params: ParamsT


class JSONRPCError(BaseModel):
    """JSON-RPC 2.0 Error Object"""
    model_config = ConfigDict(strict=True)

    code: int
    message: str


class JSONRPCResultResponse(BaseModel, Generic[ResultT]):
    """JSON-RPC 2.0 Success Response"""
    model_config = ConfigDict(strict=True)

    jsonrpc: str
    id: int
    result: ResultT


class JSONRPCErrorResponse(BaseModel):
    """JSON-RPC 2.0 Error Response"""
    model_config = ConfigDict(strict=True)

    jsonrpc: str
    id: int
    error: JSONRPCError


class InvocationResult(BaseModel, Generic[ResultT]):
    """Outcome of one invocation: an error or a result, never both"""
    
    model_config = ConfigDict(arbitrary_types_allowed=True)
    
    error: Optional[JSONRPCError] = None
    result: Optional[ResultT] = None
    
    @classmethod
    def failure(cls, message: str, code: int = SENTINEL_CODE) -> "InvocationResult[Any]":
        return cls(error=JSONRPCError(code=code, message=message))
    
    @classmethod
    def success(cls, result: Any) -> "InvocationResult[Any]":
        return cls(result=result)
    
    @property
    def ok(self) -> bool:
        return self.error is None
    
    def unwrap(self) -> Any:
        """
        Return the result or raise the error
        
        Raises:
            JSONRPCCallError: If the invocation produced an error
        """
        if self.error is not None:
            raise JSONRPCCallError(self.error.code, self.error.message)
        return self.result
