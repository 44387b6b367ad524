"""
Configuration management for the Nova product scraper.
Handles environment variables and application settings.
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Server settings
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")  # json or console

    # Outbound request identity
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    )
    MOBILE_USER_AGENT: str = os.getenv(
        "MOBILE_USER_AGENT",
        "Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X) AppleWebKit/605.1.15",
    )

    # Request timeouts (seconds)
    PAGE_TIMEOUT: float = float(os.getenv("PAGE_TIMEOUT", "20"))
    GENERIC_TIMEOUT: float = float(os.getenv("GENERIC_TIMEOUT", "15"))
    API_TIMEOUT: float = float(os.getenv("API_TIMEOUT", "10"))

    # Normalization
    DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "USD")

    @classmethod
    def browser_headers(cls) -> dict:
        """Headers mimicking a desktop browser page load."""
        return {
            "User-Agent": cls.USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

    @classmethod
    def mobile_api_headers(cls) -> dict:
        """Headers for mobile JSON endpoints."""
        return {
            "User-Agent": cls.MOBILE_USER_AGENT,
            "Accept": "application/json",
        }


config = Config()
