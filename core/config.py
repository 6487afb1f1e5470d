# core/config.py

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Loads irrigation engine settings from the environment and .env file."""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # AI recommendation provider
    openai_api_key: Optional[str] = None
    llm_model: str = "gpt-4o-mini"
    llm_timeout_s: float = 20.0

    # MongoDB (cooldown state + decision history)
    mongo_uri: Optional[str] = None
    mongo_user: Optional[str] = None
    mongo_password: Optional[str] = None
    mongo_host: str = "localhost"
    mongo_port: int = 27017
    mongo_db_name: str = "irrigation_db"

    # Cooldown persistence: "mongo", "file" or "memory"
    cooldown_backend: str = "file"
    cooldown_file: str = ".cooldown_state.json"

    # Polling cadence, in seconds
    poll_interval_s: float = 5.0
    ai_cooldown_s: float = 60.0

    # Weather
    weather_enabled: bool = True
    weather_timeout_s: float = 10.0

    log_level: str = "INFO"
    default_crop: str = "Tomato"

    @property
    def final_mongo_uri(self) -> str:
        """Constructs safe MongoDB URI from components (preferred) or returns the provided one."""
        if self.mongo_user and self.mongo_password:
            import urllib.parse
            user = urllib.parse.quote_plus(self.mongo_user)
            password = urllib.parse.quote_plus(self.mongo_password)
            return f"mongodb+srv://{user}:{password}@{self.mongo_host}/"

        if self.mongo_uri:
            return self.mongo_uri

        return f"mongodb://{self.mongo_host}:{self.mongo_port}/"

# Create a single, reusable instance of the settings
settings = Settings()
