"""Tests for the call instrumentation proxy."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from acp_bridge.client.instrumented import (
    AgentMethod,
    CallHooks,
    ExtRequest,
    InstrumentedAgent,
)
from acp_bridge.errors import CapabilityError, JsonRpcError
from acp_bridge.types.common import AgentCapabilities, TextContent
from acp_bridge.types.notifications import CancelNotification
from acp_bridge.types.requests import (
    InitializeRequest,
    LoadSessionRequest,
    NewSessionRequest,
    PromptRequest,
)
from acp_bridge.types.responses import (
    InitializeResponse,
    LoadSessionResponse,
    NewSessionResponse,
    PromptResponse,
    StopReason,
)


@pytest.fixture
def agent() -> Mock:
    """A mock outbound agent."""
    mock = Mock()
    mock.initialize = AsyncMock(
        return_value=InitializeResponse(
            protocol_version=1, agent_capabilities=AgentCapabilities(load_session=True)
        )
    )
    mock.new_session = AsyncMock(return_value=NewSessionResponse(session_id="s1"))
    mock.load_session = AsyncMock(return_value=LoadSessionResponse())
    mock.prompt = AsyncMock(return_value=PromptResponse(stop_reason=StopReason.END_TURN))
    mock.cancel = AsyncMock(return_value=None)
    mock.ext_method = AsyncMock(return_value={"ok": True})
    mock.ext_notification = AsyncMock(return_value=None)
    return mock


class TestHooks:
    """Tests for start/response hooks."""

    @pytest.mark.asyncio
    async def test_start_then_response(self, agent: Mock) -> None:
        calls: list[str] = []
        request = NewSessionRequest(cwd="/work")

        def start(req: NewSessionRequest) -> None:
            assert req is request
            assert not agent.new_session.called
            calls.append("start")

        def response(resp: NewSessionResponse, req: NewSessionRequest) -> None:
            assert resp.session_id == "s1"
            assert req is request
            calls.append("response")

        hooks = CallHooks().on(AgentMethod.NEW_SESSION, start=start, response=response)
        proxy = InstrumentedAgent(agent, hooks)

        result = await proxy.new_session(request)
        assert result.session_id == "s1"
        assert calls == ["start", "response"]

    @pytest.mark.asyncio
    async def test_hooks_are_per_method(self, agent: Mock) -> None:
        prompt_start = Mock()
        proxy = InstrumentedAgent(agent, CallHooks().on(AgentMethod.PROMPT, start=prompt_start))
        await proxy.new_session(NewSessionRequest(cwd="/"))
        prompt_start.assert_not_called()

        request = PromptRequest(session_id="s1", prompt=[TextContent(text="hi")])
        await proxy.prompt(request)
        prompt_start.assert_called_once_with(request)

    @pytest.mark.asyncio
    async def test_hook_failure_does_not_break_call(self, agent: Mock) -> None:
        hooks = CallHooks().on(
            AgentMethod.NEW_SESSION,
            start=Mock(side_effect=RuntimeError("start")),
            response=Mock(side_effect=RuntimeError("response")),
        )
        proxy = InstrumentedAgent(agent, hooks)
        result = await proxy.new_session(NewSessionRequest(cwd="/"))
        assert result.session_id == "s1"

    @pytest.mark.asyncio
    async def test_every_method_has_a_slot(self) -> None:
        assert {m.value for m in AgentMethod} == {
            "initialize",
            "new_session",
            "load_session",
            "authenticate",
            "prompt",
            "cancel",
            "set_session_mode",
            "set_session_model",
            "ext_method",
            "ext_notification",
        }

    @pytest.mark.asyncio
    async def test_cancel_hooks(self, agent: Mock) -> None:
        response = Mock()
        proxy = InstrumentedAgent(agent, CallHooks().on(AgentMethod.CANCEL, response=response))
        request = CancelNotification(session_id="s1")
        await proxy.cancel(request)
        response.assert_called_once_with(None, request)

    @pytest.mark.asyncio
    async def test_ext_method_hooks_get_method_and_params(self, agent: Mock) -> None:
        start = Mock()
        proxy = InstrumentedAgent(agent, CallHooks().on(AgentMethod.EXT_METHOD, start=start))
        assert await proxy.ext_method("acme/ping", {"x": 1}) == {"ok": True}
        start.assert_called_once_with(ExtRequest("acme/ping", {"x": 1}))


class TestErrors:
    """Tests for error normalization in the proxy."""

    @pytest.mark.asyncio
    async def test_plain_exception_normalized(self, agent: Mock) -> None:
        agent.prompt.side_effect = RuntimeError("boom")
        on_rpc_error = Mock()
        response_hook = Mock()
        hooks = CallHooks(on_rpc_error=on_rpc_error).on(AgentMethod.PROMPT, response=response_hook)
        proxy = InstrumentedAgent(agent, hooks)

        with pytest.raises(JsonRpcError) as exc_info:
            await proxy.prompt(PromptRequest(session_id="s1", prompt=[]))

        error = exc_info.value
        assert error.code == -32603
        assert "boom" in error.data
        assert isinstance(error.__cause__, RuntimeError)
        on_rpc_error.assert_called_once_with(error)
        response_hook.assert_not_called()

    @pytest.mark.asyncio
    async def test_json_rpc_error_raised_as_is(self, agent: Mock) -> None:
        original = JsonRpcError(-32602, "Invalid params")
        agent.new_session.side_effect = original
        on_rpc_error = Mock()
        proxy = InstrumentedAgent(agent, CallHooks(on_rpc_error=on_rpc_error))

        with pytest.raises(JsonRpcError) as exc_info:
            await proxy.new_session(NewSessionRequest(cwd="/"))
        assert exc_info.value is original
        on_rpc_error.assert_called_once_with(original)

    @pytest.mark.asyncio
    async def test_cancellation_propagates_untouched(self, agent: Mock) -> None:
        agent.prompt.side_effect = asyncio.CancelledError()
        on_rpc_error = Mock()
        proxy = InstrumentedAgent(agent, CallHooks(on_rpc_error=on_rpc_error))

        with pytest.raises(asyncio.CancelledError):
            await proxy.prompt(PromptRequest(session_id="s1", prompt=[]))
        on_rpc_error.assert_not_called()

    @pytest.mark.asyncio
    async def test_error_hook_failure_still_raises_error(self, agent: Mock) -> None:
        agent.prompt.side_effect = RuntimeError("boom")
        proxy = InstrumentedAgent(agent, CallHooks(on_rpc_error=Mock(side_effect=ValueError())))
        with pytest.raises(JsonRpcError):
            await proxy.prompt(PromptRequest(session_id="s1", prompt=[]))


class TestCapabilities:
    """Tests for capability gating."""

    @pytest.mark.asyncio
    async def test_load_session_before_initialize(self, agent: Mock) -> None:
        start = Mock()
        proxy = InstrumentedAgent(agent, CallHooks().on(AgentMethod.LOAD_SESSION, start=start))
        with pytest.raises(CapabilityError):
            await proxy.load_session(LoadSessionRequest(session_id="s1", cwd="/"))
        start.assert_not_called()
        agent.load_session.assert_not_called()

    @pytest.mark.asyncio
    async def test_load_session_after_initialize(self, agent: Mock) -> None:
        proxy = InstrumentedAgent(agent)
        await proxy.initialize(InitializeRequest())
        assert proxy.capabilities is not None
        assert proxy.capabilities.load_session
        await proxy.load_session(LoadSessionRequest(session_id="s1", cwd="/"))
        agent.load_session.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_load_session_not_advertised(self, agent: Mock) -> None:
        agent.initialize.return_value = InitializeResponse(protocol_version=1)
        on_rpc_error = Mock()
        proxy = InstrumentedAgent(agent, CallHooks(on_rpc_error=on_rpc_error))
        await proxy.initialize(InitializeRequest())
        with pytest.raises(CapabilityError, match="loadSession"):
            await proxy.load_session(LoadSessionRequest(session_id="s1", cwd="/"))
        on_rpc_error.assert_not_called()

    @pytest.mark.asyncio
    async def test_ext_calls_always_dispatched(self, agent: Mock) -> None:
        proxy = InstrumentedAgent(agent)
        await proxy.ext_notification("acme/event", {})
        agent.ext_notification.assert_awaited_once_with("acme/event", {})
