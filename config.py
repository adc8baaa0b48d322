"""
Central configuration management for the training-program engine
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./periodization.db"

    # Protocol provisioning
    default_equipment_type: str = "Machine"

    # Mesocycle bounds (weeks)
    min_duration_weeks: int = 4
    max_duration_weeks: int = 12

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
