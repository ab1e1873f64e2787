# middleware/config.py

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Middleware configuration"""

    # App settings
    app_name: str = "LinkedIn Salary Intelligence API"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: List[str] = ["*"]

    # Overrides for salary/ai YAML config (None keeps the YAML value)
    salary_db_path: Optional[str] = None
    cache_db_path: Optional[str] = None
    cache_backend: str = "sqlite"  # sqlite or memory
    use_ai_fallback: Optional[bool] = None

    # Ollama settings
    ollama_host: Optional[str] = None
    ollama_model: Optional[str] = None

    class Config:
        env_file = ".env"
        env_prefix = "SALARY_API_"
        case_sensitive = False


settings = Settings()
