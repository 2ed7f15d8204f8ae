"""Application settings loaded from environment variables."""
from pydantic_settings import BaseSettings
from typing import List, Optional


# Keys every endpoint needs before it can talk to the store or the provider.
REQUIRED_SETTINGS = (
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "FIREBASE_WEB_API_KEY",
)


class Settings(BaseSettings):
    """Application configuration settings."""

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Supabase (PostgREST) data store
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    SUPABASE_USERS_TABLE: str = "users"

    # Firebase Identity Toolkit
    FIREBASE_WEB_API_KEY: Optional[str] = None
    IDENTITY_TOOLKIT_BASE_URL: str = "https://identitytoolkit.googleapis.com/v1"

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"
        case_sensitive = True

    def missing_required(self) -> List[str]:
        """Return every required key that is unset or empty, in declaration order."""
        return [key for key in REQUIRED_SETTINGS if not getattr(self, key)]


settings = Settings()
