"""
Centralized application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # API Settings
    API_TITLE: str = "Kuantum Admin API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Order lifecycle and finance API for the Kuantum Ticaret admin dashboard"
    API_DEBUG: bool = False

    # Managed backend (default table store)
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""

    # Direct Postgres access (transactional table store)
    DATABASE_URL: str = ""
    CONNECTION_TIMEOUT: int = 10
    DB_CONNECT_RETRIES: int = 3

    # "supabase" or "postgres"
    TABLE_STORE_BACKEND: str = "supabase"

    # Only honoured when the selected store supports transactions
    ATOMIC_ORDER_TRANSITIONS: bool = True

    LOG_LEVEL: str = "INFO"

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://yourdomain.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:5173,http://localhost:8080"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:5173"]

        # Try JSON parse first (for array format)
        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
