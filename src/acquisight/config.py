"""Configuration settings for AcquiSight."""

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseModel):
    """Credentials and generation options for one AI provider."""

    api_key: str = ""
    model: str
    max_tokens: int
    temperature: float


class OpenAISettings(ProviderSettings):
    model: str = "gpt-4o"
    max_tokens: int = 4096
    temperature: float = 0.5


class GeminiSettings(ProviderSettings):
    model: str = "gemini-2.5-flash"
    max_tokens: int = 8000
    temperature: float = 0.2


class PerplexitySettings(ProviderSettings):
    model: str = "sonar-pro"
    max_tokens: int = 4000
    temperature: float = 0.2


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # USAspending.gov API (no key required)
    USASPENDING_BASE_URL: str = "https://api.usaspending.gov/api/v2"
    USASPENDING_TIMEOUT: float = 30.0
    # Keyword searches over a long window can be slow
    USASPENDING_SEARCH_TIMEOUT: float = 60.0
    USASPENDING_RETRY_ATTEMPTS: int = 3

    # Trailing window applied to keyword/company searches
    KEYWORD_SEARCH_YEARS: int = 10

    # Pause between pages when walking every result page
    PAGINATION_DELAY_SECONDS: float = 0.5

    # AI providers. Set keys with nested variables, e.g. GEMINI__API_KEY
    OPENAI: OpenAISettings = OpenAISettings()
    GEMINI: GeminiSettings = GeminiSettings()
    PERPLEXITY: PerplexitySettings = PerplexitySettings()

    PERPLEXITY_URL: str = "https://api.perplexity.ai/chat/completions"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"

    # Web server
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )


settings = Settings()
