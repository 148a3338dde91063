from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    spark_token: str = ""
    spark_api_base_url: str = "https://api.ciscospark.com/v1"
    spark_webhook_url: str = ""
    spark_webhook_name: str = "BotWebhook"
    spark_bot_email_suffix: str = "@sparkbot.io"

    allowed_emails: list[str] = []

    apiai_access_token: str = ""
    apiai_lang: str = "en"
    apiai_base_url: str = "https://api.api.ai/v1"
    apiai_protocol_version: str = "20150910"
    apiai_request_source: str = "spark"
    apiai_context_name: str = "spark"

    http_timeout_seconds: float = 15.0
    reply_worker_count: int = 2
    reply_queue_maxsize: int = 1000
    bootstrap_on_startup: bool = True
    dev_config: bool = False
    log_level: str = "INFO"


settings = Settings()
