from pydantic_settings import BaseSettings

from app.services.fetcher import DEFAULT_PROXIES, DEFAULT_USER_AGENT
from app.services.html_parser import DEFAULT_FEATURES


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    proxy_urls: list[str] = list(DEFAULT_PROXIES)
    user_agent: str = DEFAULT_USER_AGENT
    http_timeout: float = 30.0
    html_parser: str = DEFAULT_FEATURES
    default_source: str = "anywho"
    log_level: str = "INFO"
