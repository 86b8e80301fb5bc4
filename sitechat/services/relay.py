"""Routes messages between the site, the operator and the automation peer.

Site -> operator: visitor messages and call requests are sent to the admin
chat; chat messages are also recorded in the session and, when configured,
posted to the automation peer in the background.

Operator -> site and automation -> site: replies are queued on the session
and picked up by the site's polling.
"""

from typing import Optional

from sitechat.logging_config import get_logger
from sitechat.schemas.chat import CallRequest
from sitechat.services.automation_service import AutomationClient
from sitechat.services.command_parser import NoMatch, parse_reply_command
from sitechat.services.errors import OperatorDeliveryError
from sitechat.services.result import NOT_FOUND, Result
from sitechat.services.session_store import OutboundMessage, SessionStore
from sitechat.services.side_effects import SideEffects
from sitechat.services.telegram_service import (
    MSG_REPLY_DELIVERED,
    MSG_SESSION_NOT_FOUND,
    TelegramService,
    format_call_request,
    format_chat_notification,
)

logger = get_logger("relay")


class Relay:
    def __init__(
        self,
        store: SessionStore,
        operator: TelegramService,
        admin_chat_id: str,
        side_effects: SideEffects,
        automation: Optional[AutomationClient] = None,
    ):
        self.store = store
        self.operator = operator
        self.admin_chat_id = str(admin_chat_id)
        self.side_effects = side_effects
        self.automation = automation

    async def _notify_operator(self, text: str, context: dict) -> None:
        result = await self.operator.send_message(self.admin_chat_id, text)
        if not result.get("ok"):
            raise OperatorDeliveryError("Operator notification failed")
        logger.info("Operator notified", extra={"context": context})

    async def submit_chat_message(self, session_id: str, message: str) -> None:
        """Record a visitor message and fan it out to the operator and automation peer."""
        session = self.store.record_inbound(session_id, message)

        if self.automation is not None:
            event = self.automation.build_message_event(session, message)
            self.side_effects.spawn(
                self.automation.notify(event),
                "automation_notify",
                {"sessionId": session_id},
            )

        await self._notify_operator(
            format_chat_notification(session_id, message),
            {"kind": "chat", "sessionId": session_id},
        )

    async def submit_call_request(self, call: CallRequest) -> None:
        await self._notify_operator(
            format_call_request(call.name, call.email, call.phone, call.date, call.time),
            {"kind": "call"},
        )

    def accept_automation_reply(self, session_id: str, text: str) -> None:
        self.store.enqueue_outbound(session_id, text)
        logger.info("Automation reply queued", extra={"context": {"sessionId": session_id}})

    def poll_replies(self, session_id: str) -> list[OutboundMessage]:
        return self.store.drain_outbound(session_id)

    def reply_to_session(self, session_id: str, body: str) -> Result[str]:
        """Queue an operator reply for an existing session."""
        if session_id not in self.store:
            return Result.failure(f"Session {session_id} not found", NOT_FOUND)
        self.store.enqueue_outbound(session_id, body)
        return Result.success(session_id)

    async def handle_operator_message(self, chat_id, text: Optional[str]) -> Optional[Result[str]]:
        """Handle a text message from the operator channel.

        Returns None when the message is not a reply command from the admin chat.
        """
        if str(chat_id) != self.admin_chat_id:
            logger.debug(f"Ignoring message from foreign chat {chat_id}")
            return None

        parsed = parse_reply_command(text)
        if isinstance(parsed, NoMatch):
            return None

        result = self.reply_to_session(parsed.session_id, parsed.body)
        if result.not_found:
            logger.info("Operator reply for unknown session", extra={"context": {"sessionId": parsed.session_id}})
            await self.operator.send_message(str(chat_id), MSG_SESSION_NOT_FOUND)
        else:
            logger.info("Operator reply queued", extra={"context": {"sessionId": parsed.session_id}})
            await self.operator.send_message(str(chat_id), MSG_REPLY_DELIVERED)
        return result
