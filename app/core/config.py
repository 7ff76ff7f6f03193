from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    DATABASE_URL: str
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"

    # Redis settings
    REDIS_URL: str = "redis://localhost:6379/0"
    WORKLOAD_CACHE_TTL_SECONDS: int = 60

    PROJECT_NAME: str = "TravelDesk API"
    PROJECT_VERSION: str = "1.0.0"
    PROJECT_DESCRIPTION: str = "Travel requests, tour guide assignment and package bookings"

    PASSWORD_MIN_LENGTH: int = 8
    ACTIVITY_NOTE_MAX_LENGTH: int = 500
    APP_NAME: str = "TravelDesk"

    class Config:
        env_file = ".env"


settings = Settings()
