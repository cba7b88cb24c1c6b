# jsonrpc_invoker/core/exceptions.py

"""Custom exceptions for the JSON-RPC invoker"""


class JSONRPCInvokerException(Exception):
    """Base exception for all invoker errors"""
    
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class RequestBuildError(JSONRPCInvokerException):
    """Exception raised when a request cannot be built before sending"""
    pass


class ConfigurationError(RequestBuildError):
    """Exception raised when call configuration (URL, method) is invalid"""
    pass


class InvalidURLError(ConfigurationError):
    """Exception raised when the target URL is not an absolute http(s) URL"""
    
    def __init__(self, url: str, reason: str = ""):
        self.url = url
        message = f"Invalid URL: {url!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, details={"url": url})


class RequestEncodingError(RequestBuildError):
    """Exception raised when request params cannot be serialized to JSON"""
    pass


class JSONRPCCallError(JSONRPCInvokerException):
    """Exception raised by InvocationResult.unwrap() for an error outcome"""
    
    def __init__(self, code: int, message: str):
        self.code = code
        super().__init__(message, details={"code": code})
