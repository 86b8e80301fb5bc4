from unittest.mock import AsyncMock, Mock

import pytest

from sitechat.schemas.telegram import TelegramUpdate
from sitechat.services.operator_poller import OperatorPoller, dispatch_update


def _update(update_id, text, chat_id=-100500, is_bot=False):
    return {
        "update_id": update_id,
        "message": {
            "message_id": update_id,
            "date": 1702000000,
            "chat": {"id": chat_id, "type": "supergroup"},
            "from": {"id": 1, "is_bot": is_bot, "first_name": "Operator"},
            "text": text,
        },
    }


@pytest.fixture
def relay():
    fake = Mock()
    fake.handle_operator_message = AsyncMock(return_value=None)
    return fake


class TestDispatchUpdate:
    @pytest.mark.asyncio
    async def test_text_message_is_routed(self, relay):
        await dispatch_update(relay, TelegramUpdate(**_update(1, "/reply_abc hi")))
        relay.handle_operator_message.assert_awaited_once_with(-100500, "/reply_abc hi")

    @pytest.mark.asyncio
    async def test_bot_messages_are_skipped(self, relay):
        await dispatch_update(relay, TelegramUpdate(**_update(1, "/reply_abc hi", is_bot=True)))
        relay.handle_operator_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_without_message(self, relay):
        await dispatch_update(relay, TelegramUpdate(update_id=3))
        relay.handle_operator_message.assert_not_awaited()


class TestOperatorPoller:
    @pytest.mark.asyncio
    async def test_offset_advances(self, telegram, relay):
        telegram.get_updates.return_value = {"ok": True, "result": [_update(10, "a"), _update(11, "b")]}
        poller = OperatorPoller(telegram, relay)

        assert await poller.poll_once() == 2
        assert poller.offset == 12
        assert relay.handle_operator_message.await_count == 2

        telegram.get_updates.return_value = {"ok": True, "result": []}
        await poller.poll_once()
        assert telegram.get_updates.call_args[1]["offset"] == 12

    @pytest.mark.asyncio
    async def test_malformed_update_is_skipped(self, telegram, relay):
        telegram.get_updates.return_value = {"ok": True, "result": [{"update_id": 5, "message": {"text": "x"}}]}
        poller = OperatorPoller(telegram, relay)

        assert await poller.poll_once() == 1
        assert poller.offset == 6
        relay.handle_operator_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_api_error_raises(self, telegram, relay):
        telegram.get_updates.return_value = {"ok": False, "description": "Conflict: webhook is active"}
        poller = OperatorPoller(telegram, relay)

        with pytest.raises(RuntimeError, match="webhook is active"):
            await poller.poll_once()
