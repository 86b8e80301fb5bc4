from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    telegram_bot_token: str = ""
    admin_chat_id: str = ""

    make_webhook_url: Optional[str] = None
    make_webhook_secret: Optional[str] = None
    public_base_url: Optional[str] = None

    host: str = "0.0.0.0"
    port: int = 3000
    cors_allow_origins: str = "*"
    log_level: str = "INFO"

    counter_state_path: str = "counter-state.json"
    counter_timezone: Optional[str] = None

    telegram_polling_enabled: bool = True
    telegram_webhook_secret: Optional[str] = None

    class Config:
        env_file = ".env"
        extra = "ignore"

    def missing_required(self) -> list[str]:
        """Names of required settings that are not set."""
        missing = []
        if not self.telegram_bot_token:
            missing.append("TELEGRAM_BOT_TOKEN")
        if not self.admin_chat_id:
            missing.append("ADMIN_CHAT_ID")
        return missing

    def cors_origins(self) -> list[str]:
        origins = [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]
        return origins or ["*"]

    def reply_url(self) -> str:
        """Callback URL handed to the automation peer."""
        path = "/api/chat-reply"
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}{path}"
        return path


settings = Settings()
