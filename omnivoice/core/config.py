"""Application configuration."""
from typing import Dict, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Vogent
    vogent_public_api_key: Optional[str] = None
    vogent_call_agent_id: Optional[str] = None

    # Vapi
    vapi_api_key: Optional[str] = None
    vapi_assistant_id: Optional[str] = None
    vapi_server_url: Optional[str] = None
    vapi_server_url_secret: Optional[str] = None

    # Ultravox
    ultravox_api_key: Optional[str] = None

    # Conversation
    default_system_prompt: Optional[str] = None

    # Search
    search_url: str = "https://api.duckduckgo.com/"

    # Outbound HTTP
    request_timeout: float = 30.0

    # Dashboard login
    dashboard_password: Optional[str] = None
    login_ttl_hours: int = 24

    # Logging
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    backend_url: str = "http://localhost:8000"

    def configured_providers(self) -> Dict[str, bool]:
        """Which providers have the secrets (and ids) they need."""
        return {
            "vogent": bool(self.vogent_public_api_key and self.vogent_call_agent_id),
            "vapi": bool(self.vapi_api_key),
            "ultravox": bool(self.ultravox_api_key),
        }

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
