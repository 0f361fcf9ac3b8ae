from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "dev"
    log_level: str = "INFO"

    level_store_backend: str = "mongo"
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "levelup"
    mongodb_server_selection_timeout_ms: int = 3000
    levels_collection: str = "levels"
    journeys_collection: str = "gameData"

    llm_provider: str = "gemini"
    llm_model: str = "gemini-2.5-flash-lite"
    gemini_api_key: str = ""
    gemini_api_url: str = ""
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "qwen2.5:3b"
    llm_http_timeout_seconds: float = 20.0
    llm_max_retries: int = 1
    generation_timeout_seconds: float = 30.0

    default_time_commitment: str = "15 minutes"
    default_goal: str = "master this skill"

    cors_allow_origins: list[str] = ["http://localhost:3000", "http://localhost:5174"]

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
