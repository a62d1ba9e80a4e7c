"""
Configuration management using environment variables.
Handles all service settings with proper validation and defaults.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import validator
from pydantic_settings import BaseSettings


class TrackerConfig(BaseSettings):
    """
    Configuration class for the book tracker service.
    Uses pydantic BaseSettings for environment variable management.
    """

    # MongoDB Configuration
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "book_tracker"
    users_collection: str = "users"
    sessions_collection: str = "sessions"
    books_collection: str = "books"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False

    # Authentication
    auth_strategy: str = "token"
    jwt_secret: str = "dev-secret-change-me-in-production"
    jwt_algorithm: str = "HS256"
    token_ttl_seconds: int = 7 * 24 * 3600
    session_ttl_seconds: int = 24 * 3600
    session_cookie_name: str = "sid"
    cookie_secure: bool = False
    bcrypt_rounds: int = 10

    # Google Books
    google_books_url: str = "https://www.googleapis.com/books/v1/volumes"
    google_books_api_key: Optional[str] = None
    search_max_results: int = 20
    request_timeout: int = 10

    # HTTP surface
    cors_origins: str = "*"
    frontend_dir: Optional[str] = None

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra fields from .env
    }

    @validator('auth_strategy')
    def validate_auth_strategy(cls, v):
        """Ensure the auth strategy is one we can build."""
        valid_strategies = ['token', 'session']
        if v.lower() not in valid_strategies:
            raise ValueError(f'auth_strategy must be one of: {valid_strategies}')
        return v.lower()

    @validator('jwt_secret')
    def validate_jwt_secret(cls, v):
        """Reject signing secrets too short to be useful."""
        if len(v) < 32:
            raise ValueError('jwt_secret must be at least 32 characters')
        return v

    @validator('token_ttl_seconds', 'session_ttl_seconds')
    def validate_ttl(cls, v):
        """Ensure credential lifetimes are positive."""
        if v <= 0:
            raise ValueError('credential lifetime must be positive')
        return v

    @validator('bcrypt_rounds')
    def validate_bcrypt_rounds(cls, v):
        """bcrypt accepts cost factors between 4 and 31; keep it practical."""
        if v < 4 or v > 16:
            raise ValueError('bcrypt_rounds must be between 4 and 16')
        return v

    @validator('search_max_results')
    def validate_search_max_results(cls, v):
        """Google Books caps maxResults at 40."""
        if v < 1 or v > 40:
            raise ValueError('search_max_results must be between 1 and 40')
        return v

    @validator('request_timeout')
    def validate_timeout(cls, v):
        """Ensure timeout is reasonable."""
        if v < 1 or v > 120:
            raise ValueError('request_timeout must be between 1 and 120 seconds')
        return v

    @validator('log_level')
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @validator('log_format')
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def get_frontend_path(self) -> Optional[Path]:
        """Get the static frontend directory if one is configured and present."""
        if self.frontend_dir:
            path = Path(self.frontend_dir)
            if path.is_dir():
                return path
        return None

    def get_cors_origins(self) -> List[str]:
        """Split the comma-separated CORS allow-list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def uses_sessions(self) -> bool:
        """Check whether the server-side session strategy is active."""
        return self.auth_strategy == "session"


def load_config() -> TrackerConfig:
    """Build the configuration from the environment. Called by entry points only."""
    return TrackerConfig()
