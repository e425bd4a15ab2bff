"""Outbound call instrumentation.

``InstrumentedAgent`` wraps an ``Agent`` and, for every call:

1. checks the agent advertised the capability the call needs,
2. runs the method's ``start`` hook with the request,
3. dispatches,
4. runs the method's ``response`` hook with (response, request).

Failures are normalized to ``JsonRpcError`` and reported through
``on_rpc_error`` before being raised. Failures that cannot be normalized
(cancellation, interpreter exit) propagate untouched with no hook called.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple

from acp_bridge.client.connection import Agent
from acp_bridge.errors import CapabilityError, JsonRpcError, to_json_rpc_error
from acp_bridge.logging import get_logger
from acp_bridge.types.common import AgentCapabilities
from acp_bridge.types.notifications import CancelNotification
from acp_bridge.types.requests import (
    AuthenticateRequest,
    InitializeRequest,
    LoadSessionRequest,
    NewSessionRequest,
    PromptRequest,
    SetSessionModelRequest,
    SetSessionModeRequest,
)
from acp_bridge.types.responses import (
    AuthenticateResponse,
    InitializeResponse,
    LoadSessionResponse,
    NewSessionResponse,
    PromptResponse,
    SetSessionModelResponse,
    SetSessionModeResponse,
)

log = get_logger("client")

StartHook = Callable[[Any], None]
ResponseHook = Callable[[Any, Any], None]


class AgentMethod(str, Enum):
    """Every outbound call the proxy instruments."""

    INITIALIZE = "initialize"
    NEW_SESSION = "new_session"
    LOAD_SESSION = "load_session"
    AUTHENTICATE = "authenticate"
    PROMPT = "prompt"
    CANCEL = "cancel"
    SET_SESSION_MODE = "set_session_mode"
    SET_SESSION_MODEL = "set_session_model"
    EXT_METHOD = "ext_method"
    EXT_NOTIFICATION = "ext_notification"


class ExtRequest(NamedTuple):
    """Request value passed to hooks for extension calls."""

    method: str
    params: dict[str, Any]


@dataclass
class MethodHooks:
    start: StartHook | None = None
    response: ResponseHook | None = None


@dataclass
class CallHooks:
    """Per-method hooks plus one shared error hook."""

    methods: dict[AgentMethod, MethodHooks] = field(default_factory=dict)
    on_rpc_error: Callable[[JsonRpcError], None] | None = None

    def on(
        self,
        method: AgentMethod,
        start: StartHook | None = None,
        response: ResponseHook | None = None,
    ) -> CallHooks:
        """Register hooks for ``method``. Returns self for chaining."""
        hooks = self.methods.setdefault(method, MethodHooks())
        if start is not None:
            hooks.start = start
        if response is not None:
            hooks.response = response
        return self

    def get(self, method: AgentMethod) -> MethodHooks | None:
        return self.methods.get(method)


# method -> (capability name, check)
CAPABILITY_REQUIREMENTS: dict[AgentMethod, tuple[str, Callable[[AgentCapabilities], bool]]] = {
    AgentMethod.LOAD_SESSION: ("loadSession", lambda caps: caps.load_session),
}


class InstrumentedAgent:
    """Agent proxy that reports every call's lifecycle to ``hooks``."""

    def __init__(self, agent: Agent, hooks: CallHooks | None = None) -> None:
        self._agent = agent
        self.hooks = hooks or CallHooks()
        self.capabilities: AgentCapabilities | None = None

    def _check_capability(self, method: AgentMethod) -> None:
        requirement = CAPABILITY_REQUIREMENTS.get(method)
        if requirement is None:
            return
        name, check = requirement
        if self.capabilities is None or not check(self.capabilities):
            raise CapabilityError(method.value, name)

    def _run_hook(self, method: AgentMethod, hook: Callable[..., None], *args: Any) -> None:
        try:
            hook(*args)
        except Exception:
            log.exception("%s hook failed", method.value)

    async def _call(
        self,
        method: AgentMethod,
        request: Any,
        dispatch: Callable[[], Awaitable[Any]],
    ) -> Any:
        self._check_capability(method)

        hooks = self.hooks.get(method)
        if hooks is not None and hooks.start is not None:
            self._run_hook(method, hooks.start, request)

        try:
            response = await dispatch()
        except BaseException as exc:
            error = to_json_rpc_error(exc)
            if error is None:
                raise
            log.warning("JSON-RPC error in %s: %s", method.value, error)
            if self.hooks.on_rpc_error is not None:
                self._run_hook(method, self.hooks.on_rpc_error, error)
            if error is exc:
                raise
            raise error from exc

        if method is AgentMethod.INITIALIZE:
            self.capabilities = response.agent_capabilities

        if hooks is not None and hooks.response is not None:
            self._run_hook(method, hooks.response, response, request)
        return response

    async def initialize(self, params: InitializeRequest) -> InitializeResponse:
        return await self._call(
            AgentMethod.INITIALIZE, params, lambda: self._agent.initialize(params)
        )

    async def new_session(self, params: NewSessionRequest) -> NewSessionResponse:
        return await self._call(
            AgentMethod.NEW_SESSION, params, lambda: self._agent.new_session(params)
        )

    async def load_session(self, params: LoadSessionRequest) -> LoadSessionResponse:
        return await self._call(
            AgentMethod.LOAD_SESSION, params, lambda: self._agent.load_session(params)
        )

    async def authenticate(self, params: AuthenticateRequest) -> AuthenticateResponse:
        return await self._call(
            AgentMethod.AUTHENTICATE, params, lambda: self._agent.authenticate(params)
        )

    async def prompt(self, params: PromptRequest) -> PromptResponse:
        return await self._call(AgentMethod.PROMPT, params, lambda: self._agent.prompt(params))

    async def cancel(self, params: CancelNotification) -> None:
        await self._call(AgentMethod.CANCEL, params, lambda: self._agent.cancel(params))

    async def set_session_mode(self, params: SetSessionModeRequest) -> SetSessionModeResponse:
        return await self._call(
            AgentMethod.SET_SESSION_MODE, params, lambda: self._agent.set_session_mode(params)
        )

    async def set_session_model(self, params: SetSessionModelRequest) -> SetSessionModelResponse:
        return await self._call(
            AgentMethod.SET_SESSION_MODEL, params, lambda: self._agent.set_session_model(params)
        )

    async def ext_method(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        return await self._call(
            AgentMethod.EXT_METHOD,
            ExtRequest(method, params),
            lambda: self._agent.ext_method(method, params),
        )

    async def ext_notification(self, method: str, params: dict[str, Any]) -> None:
        await self._call(
            AgentMethod.EXT_NOTIFICATION,
            ExtRequest(method, params),
            lambda: self._agent.ext_notification(method, params),
        )
