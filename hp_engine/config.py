"""
Configuration settings for the Shahmukhi HP Engine.
Loads environment variables and provides application-wide settings.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Gemini Configuration
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com"
    GEMINI_API_VERSION: str = "v1beta"
    GEMINI_MODEL: str = "gemini-3-pro-preview"
    GEMINI_TIMEOUT: Optional[float] = None  # no read timeout on analysis calls
    GEMINI_CONNECT_TIMEOUT: float = 10.0
    GEMINI_TEMPERATURE: Optional[float] = None

    # Credential storage
    CREDENTIAL_FILE: str = "./.hp_engine/credentials.json"
    CREDENTIAL_KEY_NAME: str = "GEMINI_API_KEY"

    # Upload Configuration
    MAX_FILE_SIZE: int = 20 * 1024 * 1024  # 20 MB

    # Report Configuration
    REPORT_FILENAME: str = "Shahmukhi_Analysis_Report.docx"
    REPORT_TITLE: str = "Punjabi Narrative Discourse Analysis"
    REPORT_AUTHOR: str = "Shahmukhi HP Engine"
    REPORT_SCRIPT_FONT: str = "Arial Unicode MS"
    # Embedded chart size (500 x 250 px at 96 dpi)
    REPORT_CHART_WIDTH_INCHES: float = 5.21
    REPORT_CHART_HEIGHT_INCHES: float = 2.6

    # Chart Configuration
    CHART_SCALE: int = 2
    CHART_WIDTH_INCHES: float = 10.0
    CHART_HEIGHT_INCHES: float = 5.0

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into a list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]


# Global settings instance
settings = Settings()
