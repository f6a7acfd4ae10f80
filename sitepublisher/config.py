"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file and override existing env vars
load_dotenv(override=True)

DEFAULT_WEBSITE_URL = "https://siteomatic.vercel.app/"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Template repository (publish target)
    github_token: str = Field(default="")
    github_host: str = "github.com"
    template_repo_owner: str = "sujeethshingade"
    template_repo_name: str = "siteomatic-website-template"
    template_repo_url: str | None = None  # Overrides host/owner/name when set
    template_repo_branch: str = "main"
    site_config_path: str = "src/config/siteConfig.ts"
    workspace_dir: str = "./temp-centralized-website"
    git_author_name: str = "siteomatic-bot"
    git_author_email: str = "siteomatic-bot@users.noreply.github.com"
    publish_timeout_seconds: float | None = 120.0

    # Public website
    website_url: str = DEFAULT_WEBSITE_URL

    # Vercel
    vercel_token: str = Field(default="")
    vercel_team_id: str | None = None
    vercel_project_id: str | None = None
    vercel_api_url: str = "https://api.vercel.com"
    vercel_webhook_secret: str = Field(default="")
    webhook_signature_algorithm: Literal["sha1", "sha256"] = "sha1"

    # Deployment status cache
    deployment_cache_size: int = 50

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"
    log_directory: str = "logs"
    log_file_name: str = "sitepublisher.log"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
