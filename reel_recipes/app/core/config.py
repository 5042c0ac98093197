import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

RecipeFormat = Literal["html", "structured"]


class Settings(BaseSettings):
    enable_server_api: bool = Field(True, alias="ENABLE_SERVER_API")
    recipe_format: RecipeFormat = Field("html", alias="RECIPE_FORMAT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    openai_api_key: str | None = Field(None, alias="OPENAI_API_KEY")
    openai_base_url: str = Field("https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    openai_model: str = Field("gpt-4o-mini", alias="OPENAI_MODEL")
    llm_timeout_seconds: float = Field(60.0, alias="LLM_TIMEOUT_SECONDS")
    datocms_api_token: str | None = Field(None, alias="DATOCMS_API_TOKEN")
    datocms_base_url: str = Field("https://site-api.datocms.com", alias="DATOCMS_BASE_URL")
    datocms_item_type_id: str = Field("YcJscRUJQKeioYp5KnB8Pg", alias="DATOCMS_ITEM_TYPE_ID")
    # Off by default: every publish creates a new record.
    datocms_dedupe: bool = Field(False, alias="DATOCMS_DEDUPE")
    cms_timeout_seconds: float = Field(30.0, alias="CMS_TIMEOUT_SECONDS")
    mail_host: str | None = Field(None, alias="MAIL_HOST")
    mail_port: int = Field(465, alias="MAIL_PORT")
    mail_user: str | None = Field(None, alias="MAIL_USER")
    mail_password: str | None = Field(None, alias="MAIL_PASSWORD")
    from_mail: str | None = Field(None, alias="FROM_MAIL")
    to_mail: str | None = Field(None, alias="TO_MAIL")
    mail_timeout_seconds: float = Field(15.0, alias="MAIL_TIMEOUT_SECONDS")
    fetch_timeout_seconds: float = Field(15.0, alias="FETCH_TIMEOUT_SECONDS")
    scraper_user_agent: str = Field(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_6) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
        alias="SCRAPER_USER_AGENT",
    )
    scraper_cookies: str | None = Field(None, alias="SCRAPER_COOKIES")

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True
    )

    @property
    def mail_configured(self) -> bool:
        return bool(self.mail_host and self.from_mail and self.to_mail)


logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    try:
        settings = Settings()
    except PermissionError:
        logger.warning("Unable to read .env; continuing with environment variables only")
        settings = Settings(_env_file=None)
    return settings
