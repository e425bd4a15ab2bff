"""Error types and JSON-RPC error normalization.

Error Codes (per JSON-RPC 2.0):
  -32700  Parse error      Invalid JSON received
  -32600  Invalid Request  Request invalid or session not found
  -32601  Method not found Method not implemented
  -32602  Invalid params   Invalid parameters passed
  -32603  Internal error   Internal agent error

Error Response Format:
  {
    "jsonrpc": "2.0",
    "id": <request-id>,
    "error": {"code": <error-code>, "message": <error-message>, "data": <optional>}
  }
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import IntEnum
from typing import Any


class JsonRpcErrorCode(IntEnum):
    """Standard JSON-RPC 2.0 error codes."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


class JsonRpcError(Exception):
    """A structured JSON-RPC error, raised locally or received from the peer."""

    def __init__(
        self,
        code: int,
        message: str,
        data: Any = None,
        request_id: int | str | None = None,
    ) -> None:
        super().__init__(data if isinstance(data, str) and data else message)
        self.code = code
        self.message = message
        self.data = data
        self.request_id = request_id

    def __repr__(self) -> str:
        return f"JsonRpcError(code={self.code}, message={self.message!r})"

    def to_error_obj(self) -> dict[str, Any]:
        """Return the ``error`` member of a JSON-RPC response."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error

    def to_dict(self) -> dict[str, Any]:
        """Return a complete JSON-RPC error response."""
        return {"jsonrpc": "2.0", "id": self.request_id, "error": self.to_error_obj()}

    @classmethod
    def from_error_obj(
        cls, error: Mapping[str, Any], request_id: int | str | None = None
    ) -> JsonRpcError:
        """Build from the ``error`` member of a received response."""
        code = error.get("code")
        message = error.get("message")
        return cls(
            code=code if _is_int(code) else JsonRpcErrorCode.INTERNAL_ERROR,
            message=message if isinstance(message, str) else "Unknown error",
            data=error.get("data"),
            request_id=request_id,
        )

    @classmethod
    def parse_error(cls, data: Any = None) -> JsonRpcError:
        return cls(JsonRpcErrorCode.PARSE_ERROR, "Parse error", data)

    @classmethod
    def invalid_request(cls, data: Any = None) -> JsonRpcError:
        return cls(JsonRpcErrorCode.INVALID_REQUEST, "Invalid request", data)

    @classmethod
    def method_not_found(cls, method: str) -> JsonRpcError:
        return cls(JsonRpcErrorCode.METHOD_NOT_FOUND, "Method not found", {"method": method})

    @classmethod
    def invalid_params(cls, data: Any = None) -> JsonRpcError:
        return cls(JsonRpcErrorCode.INVALID_PARAMS, "Invalid params", data)

    @classmethod
    def internal_error(cls, data: Any = None) -> JsonRpcError:
        return cls(JsonRpcErrorCode.INTERNAL_ERROR, "Internal error", data)


class BridgeError(Exception):
    """Base class for local (non-protocol) failures."""


class CapabilityError(BridgeError):
    """The remote agent did not advertise support for the called method."""

    def __init__(self, method: str, capability: str) -> None:
        super().__init__(f"Agent does not support {capability} capability (required by {method})")
        self.method = method
        self.capability = capability


class HandlerNotImplemented(BridgeError):
    """A required local handler (e.g. file read/write) was not supplied."""

    def __init__(self, handler: str) -> None:
        super().__init__(f"{handler} handler not implemented")
        self.handler = handler


class TransportError(BridgeError):
    """Socket-level failure (handshake, I/O)."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class ConnectionClosedError(BridgeError):
    """The RPC connection ended while a request was still pending."""


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def to_json_rpc_error(error: Any) -> JsonRpcError | None:
    """Try to extract a JSON-RPC error from an arbitrary failure value.

    Classification order:
    1. Already a JsonRpcError - returned unchanged.
    2. An Exception - keeps ``code``/``message`` attributes when it carries
       them, otherwise wrapped as an internal error with the message as data.
    3. A mapping or object with numeric ``code`` and string ``message``.
    4. Anything else (including CancelledError, KeyboardInterrupt and plain
       values) - None, the caller must re-raise the original value.

    Args:
        error: The failure value to classify.

    Returns:
        The normalized error, or None when the value is not a protocol error.
    """
    if isinstance(error, JsonRpcError):
        return error

    if isinstance(error, Exception):
        code = getattr(error, "code", None)
        message = getattr(error, "message", None)
        if _is_int(code) and isinstance(message, str):
            return JsonRpcError(code, message, getattr(error, "data", None))
        text = str(error) or type(error).__name__
        return JsonRpcError(JsonRpcErrorCode.INTERNAL_ERROR, text, text)

    if isinstance(error, BaseException) or error is None:
        return None

    if isinstance(error, Mapping):
        code = error.get("code")
        message = error.get("message")
        data = error.get("data")
    else:
        code = getattr(error, "code", None)
        message = getattr(error, "message", None)
        data = getattr(error, "data", None)

    if _is_int(code) and isinstance(message, str):
        return JsonRpcError(code, message, data)

    return None
