from unittest.mock import AsyncMock

import pytest

from sitechat.schemas.chat import CallRequest
from sitechat.services.automation_service import AutomationClient
from sitechat.services.errors import OperatorDeliveryError
from sitechat.services.relay import Relay
from sitechat.services.session_store import SessionStore
from sitechat.services.side_effects import SideEffects
from sitechat.services.signature import SignatureCodec
from sitechat.services.telegram_service import MSG_REPLY_DELIVERED, MSG_SESSION_NOT_FOUND

ADMIN_CHAT = "-100500"


@pytest.fixture
def store(clock):
    return SessionStore(clock)


@pytest.fixture
def automation():
    client = AutomationClient("https://hook.example.com/abc", SignatureCodec("s3cret"), "/api/chat-reply")
    client.notify = AsyncMock(return_value=200)
    return client


def _relay(store, telegram, automation=None, side_effects=None):
    return Relay(
        store=store,
        operator=telegram,
        admin_chat_id=ADMIN_CHAT,
        side_effects=side_effects or SideEffects(),
        automation=automation,
    )


class TestSubmitChatMessage:
    @pytest.mark.asyncio
    async def test_records_and_notifies_operator(self, store, telegram):
        relay = _relay(store, telegram)

        await relay.submit_chat_message("abc", "hi")

        session = store.get("abc")
        assert [(e.role, e.text) for e in session.history] == [("user", "hi")]
        chat_id, text = telegram.send_message.call_args[0]
        assert chat_id == ADMIN_CHAT
        assert "abc" in text
        assert "hi" in text
        assert "/reply_abc" in text

    @pytest.mark.asyncio
    async def test_automation_gets_trimmed_history(self, store, telegram, automation):
        effects = SideEffects()
        relay = _relay(store, telegram, automation, effects)
        for i in range(25):
            store.record_inbound("abc", f"old {i}")

        await relay.submit_chat_message("abc", "latest")
        await effects.drain()

        payload = automation.notify.call_args[0][0]
        assert payload["type"] == "livechat_message"
        assert payload["sessionId"] == "abc"
        assert payload["message"] == "latest"
        assert payload["replyUrl"] == "/api/chat-reply"
        assert len(payload["history"]) == 20
        assert payload["history"][-1]["text"] == "latest"
        assert set(payload["history"][0]) == {"role", "text", "ts"}

    @pytest.mark.asyncio
    async def test_automation_failure_is_invisible_to_caller(self, store, telegram, automation):
        effects = SideEffects()
        automation.notify.side_effect = ConnectionError("peer down")
        relay = _relay(store, telegram, automation, effects)

        await relay.submit_chat_message("abc", "hi")
        await effects.drain()

        assert len(effects.failures) == 1
        assert effects.failures[0].name == "automation_notify"
        assert "abc" in store

    @pytest.mark.asyncio
    async def test_no_automation_configured(self, store, telegram):
        effects = SideEffects()
        relay = _relay(store, telegram, None, effects)

        await relay.submit_chat_message("abc", "hi")

        assert effects.pending == 0

    @pytest.mark.asyncio
    async def test_operator_failure_raises(self, store, telegram):
        telegram.send_message.return_value = {"ok": False, "description": "Unauthorized"}
        relay = _relay(store, telegram)

        with pytest.raises(OperatorDeliveryError):
            await relay.submit_chat_message("abc", "hi")
        # state mutation happened before the operator call
        assert "abc" in store


class TestSubmitCallRequest:
    @pytest.mark.asyncio
    async def test_call_request_is_forwarded(self, store, telegram):
        relay = _relay(store, telegram)
        call = CallRequest(type="call", name="Olena", email="o@example.com", phone="+380501112233", date="2024-01-02", time="14:00")

        await relay.submit_call_request(call)

        text = telegram.send_message.call_args[0][1]
        assert "Olena" in text
        assert "+380501112233" in text
        assert "14:00" in text
        assert len(store) == 0


class TestOperatorCommands:
    @pytest.mark.asyncio
    async def test_reply_to_known_session(self, store, telegram):
        relay = _relay(store, telegram)
        store.record_inbound("abc", "hi")

        result = await relay.handle_operator_message(int(ADMIN_CHAT), "/reply_abc Hello there")

        assert result.ok is True
        assert [m.text for m in relay.poll_replies("abc")] == ["Hello there"]
        assert relay.poll_replies("abc") == []
        telegram.send_message.assert_awaited_with(ADMIN_CHAT, MSG_REPLY_DELIVERED)
        assert store.get("abc").history[-1].role == "assistant"

    @pytest.mark.asyncio
    async def test_reply_to_unknown_session(self, store, telegram):
        relay = _relay(store, telegram)

        result = await relay.handle_operator_message(ADMIN_CHAT, "/reply_gone Hello")

        assert result.not_found is True
        assert "gone" not in store
        telegram.send_message.assert_awaited_with(ADMIN_CHAT, MSG_SESSION_NOT_FOUND)

    @pytest.mark.asyncio
    async def test_malformed_command_ignored(self, store, telegram):
        relay = _relay(store, telegram)
        store.record_inbound("abc", "hi")

        assert await relay.handle_operator_message(ADMIN_CHAT, "just chatting") is None
        assert await relay.handle_operator_message(ADMIN_CHAT, "/reply_abc") is None
        telegram.send_message.assert_not_awaited()
        assert relay.poll_replies("abc") == []

    @pytest.mark.asyncio
    async def test_foreign_chat_ignored(self, store, telegram):
        relay = _relay(store, telegram)
        store.record_inbound("abc", "hi")

        assert await relay.handle_operator_message(12345, "/reply_abc sneaky") is None
        assert relay.poll_replies("abc") == []


class TestAutomationReply:
    def test_reply_is_queued_and_session_created(self, store, telegram):
        relay = _relay(store, telegram)

        relay.accept_automation_reply("new", "Hi from bot")

        assert [m.text for m in relay.poll_replies("new")] == ["Hi from bot"]
        assert store.get("new").history[-1].role == "assistant"
