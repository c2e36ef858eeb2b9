"""
Configuration management for the Kindergarten Meal Planner
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Kindergarten Meal Planner"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    CORS_ORIGINS: list[str] = ["*"]

    # Database
    DATABASE_URL: str = "sqlite:///./meal_planner.db"
    SEED_ON_STARTUP: bool = True  # fill an empty catalog with campuses, ingredients, dishes

    # Recipe generation
    DEFAULT_SERVINGS: int = 100
    MAX_WEEKDAYS_PER_GENERATION: int = 10
    DISH_SELECTION_ATTEMPTS: int = 10

    # In-memory cache
    STATISTICS_CACHE_TTL_SECONDS: int = 30 * 60
    CAMPUS_CACHE_TTL_SECONDS: int = 60 * 60

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
