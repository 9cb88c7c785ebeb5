"""Configuration management for HeaderMatch."""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _parse_cors_origins() -> list[str]:
    """Parse CORS origins from environment variable."""
    cors_env = os.getenv("CORS_ALLOW_ORIGINS")
    if cors_env:
        return cors_env.split(",")
    return ["*"]


class Settings(BaseModel):
    """Application settings."""

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Provider used when a caller does not name one ('openai', 'openrouter',
    # 'anthropic', 'aws-bedrock' or 'mock')
    default_provider: str = os.getenv("HEADERMATCH_PROVIDER", "openai")
    default_model: str = os.getenv("HEADERMATCH_MODEL", "gpt-4")

    # Sampling defaults for matching requests
    temperature: float = float(os.getenv("HEADERMATCH_TEMPERATURE", "0.3"))
    max_tokens: int = int(os.getenv("HEADERMATCH_MAX_TOKENS", "4000"))
    top_p: float = float(os.getenv("HEADERMATCH_TOP_P", "1.0"))
    top_k: int = int(os.getenv("HEADERMATCH_TOP_K", "50"))

    # Credential fallbacks, used when a provider configuration omits them
    anthropic_api_key: Optional[str] = os.getenv("ANTHROPIC_API_KEY")
    openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    openrouter_api_key: Optional[str] = os.getenv("OPENROUTER_API_KEY")
    openrouter_base_url: str = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
    aws_region: Optional[str] = os.getenv("AWS_REGION")

    # Transport timeout for HTTP-based providers
    request_timeout_seconds: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "120"))

    # Maximum characters of a bad response quoted in parse errors
    response_preview_chars: int = int(os.getenv("RESPONSE_PREVIEW_CHARS", "200"))

    # Maximum provider instances kept by a registry before the least recently
    # used one is closed
    provider_cache_size: int = int(os.getenv("PROVIDER_CACHE_SIZE", "16"))

    # Prompts kept by the mock provider for inspection
    mock_prompt_history: int = int(os.getenv("MOCK_PROMPT_HISTORY", "100"))

    # Server settings
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    cors_allow_origins: list[str] = _parse_cors_origins()


settings = Settings()
