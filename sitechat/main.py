import asyncio
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sitechat.config import Settings, settings as default_settings
from sitechat.logging_config import get_logger, setup_logging
from sitechat.routers import chat, counter, telegram_webhook
from sitechat.services.automation_service import build_automation_client
from sitechat.services.clock import Clock, SystemClock
from sitechat.services.counter_service import CounterStore, LiveCounter
from sitechat.services.janitor import build_janitor
from sitechat.services.operator_poller import OperatorPoller
from sitechat.services.relay import Relay
from sitechat.services.scheduler import PeriodicTask
from sitechat.services.session_store import SessionStore
from sitechat.services.side_effects import SideEffects
from sitechat.services.signature import SignatureCodec
from sitechat.services.telegram_service import TelegramService

logger = get_logger("main")


def create_app(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    telegram: Optional[TelegramService] = None,
) -> FastAPI:
    settings = settings or default_settings
    clock = clock or SystemClock.from_name(settings.counter_timezone)
    telegram = telegram or TelegramService(settings.telegram_bot_token)

    app = FastAPI(
        title="Site Chat Bridge",
        description="Relay between the website live chat, the Telegram operator and the automation webhook",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(chat.router)
    app.include_router(counter.router)
    app.include_router(telegram_webhook.router)

    side_effects = SideEffects()
    codec = SignatureCodec(settings.make_webhook_secret)
    store = SessionStore(clock)
    relay = Relay(
        store=store,
        operator=telegram,
        admin_chat_id=settings.admin_chat_id,
        side_effects=side_effects,
        automation=build_automation_client(settings.make_webhook_url, codec, settings.reply_url()),
    )
    live_counter = LiveCounter(
        CounterStore(settings.counter_state_path),
        clock=clock,
        on_persist_error=lambda exc: side_effects.capture("counter_persist", exc),
    )

    app.state.settings = settings
    app.state.side_effects = side_effects
    app.state.codec = codec
    app.state.sessions = store
    app.state.relay = relay
    app.state.counter = live_counter

    counter_timer = PeriodicTask("live_counter", action=live_counter.tick, next_delay=live_counter.next_delay)
    janitor = build_janitor(store)
    poller = OperatorPoller(telegram, relay) if settings.telegram_polling_enabled else None

    @app.on_event("startup")
    async def start_background_tasks() -> None:
        live_counter.recover()
        counter_timer.start()
        janitor.start()
        if poller is not None:
            poller.start()
        logger.info(
            "Site chat bridge started",
            extra={
                "context": {
                    "automation": "[set]" if relay.automation else "[missing]",
                    "signed": codec.enabled,
                    "polling": poller is not None,
                }
            },
        )

    @app.on_event("shutdown")
    async def stop_background_tasks() -> None:
        if poller is not None:
            await poller.stop()
        await janitor.stop()
        await counter_timer.stop()
        try:
            await asyncio.wait_for(side_effects.drain(), timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Pending side effects abandoned on shutdown", extra={"context": {"pending": side_effects.pending}})

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "sessions": len(store),
            "side_effect_failures": len(side_effects.failures),
        }

    return app


setup_logging(default_settings.log_level)

app = create_app()
