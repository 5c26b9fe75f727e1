from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./chatdesk.db"
    debug: bool = False
    log_level: str = "INFO"
    cors_allow_origins: str = "*"

    whatsapp_token: str = ""
    phone_number_id: str = ""
    verify_token: str = "123456"
    webhook_url: str = ""
    graph_api_base_url: str = "https://graph.facebook.com"
    graph_api_version: str = "v20.0"
    whatsapp_timeout_seconds: float = 30.0

    openai_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"
    ai_replies_enabled: bool = True
    ai_max_tokens: int = 150
    ai_temperature: float = 0.7
    ai_timeout_seconds: float = 30.0

    broadcast_send_delay_seconds: float = 0.1

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
