import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Always load .env from the project root
BASE_DIR = os.path.dirname(os.path.dirname(__file__))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./parkwise.db"

    JWT_SECRET: str = "parkwise-dev-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24 * 7

    PUBLIC_BASE_URL: str = "http://localhost:9002"
    DEFAULT_SEARCH_RADIUS_KM: float = 5.0
    SEED_DEMO_DATA: bool = True

    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: list[str] = ["http://localhost:9002", "http://127.0.0.1:9002"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
