from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Process configuration. Required values are checked once, at startup."""

    whatsapp_cloud_api_verification: str
    whatsapp_cloud_version: str = "v20.0"
    whatsapp_cloud_phone_number_id: str
    whatsapp_cloud_access_token: str
    whatsapp_api_base_url: str = "https://graph.facebook.com"
    whatsapp_timeout_seconds: float = 30.0

    bot_backend: Literal["openai", "dialogflow"] = "openai"

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-2024-05-13"
    openai_timeout_seconds: float = 60.0

    dialogflow_project_id: Optional[str] = None
    dialogflow_access_token: Optional[str] = None
    dialogflow_language_code: str = "en"
    dialogflow_timeout_seconds: float = 15.0

    menu_header_image_url: Optional[str] = None

    session_ttl_seconds: float = 1800.0
    dedup_max_entries: int = 1024

    alert_bot_token: Optional[str] = None
    alert_chat_id: Optional[str] = None
    alerts_admin_token: Optional[str] = None

    log_level: str = "INFO"
    port: int = 3000

    class Config:
        env_file = ".env"
        extra = "ignore"

    @model_validator(mode="after")
    def _check_backend_credentials(self) -> "Settings":
        if self.bot_backend == "openai" and not self.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required when BOT_BACKEND=openai")
        if self.bot_backend == "dialogflow":
            missing = [
                name
                for name, value in (
                    ("DIALOGFLOW_PROJECT_ID", self.dialogflow_project_id),
                    ("DIALOGFLOW_ACCESS_TOKEN", self.dialogflow_access_token),
                )
                if not value
            ]
            if missing:
                raise ValueError(f"{', '.join(missing)} required when BOT_BACKEND=dialogflow")
        if self.session_ttl_seconds < 0:
            raise ValueError("SESSION_TTL_SECONDS must not be negative")
        if self.dedup_max_entries < 1:
            raise ValueError("DEDUP_MAX_ENTRIES must be at least 1")
        return self

    @property
    def messages_url(self) -> str:
        base = self.whatsapp_api_base_url.rstrip("/")
        return f"{base}/{self.whatsapp_cloud_version}/{self.whatsapp_cloud_phone_number_id}/messages"


def get_settings() -> Settings:
    return Settings()
