from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    galaxy_data_dir: Path = Path.home() / ".knowledge-galaxy" / "data"
    sqlite_filename: str = "galaxy.db"

    # Any OpenAI-compatible chat completion endpoint works here
    llm_base_url: str = "https://api.deepseek.com"
    llm_api_key: str = ""
    llm_model: str = "deepseek-chat"
    llm_temperature: float = 0.1
    llm_timeout: float = 60.0

    review_batch_limit: int = 50
    atlas_limit: int = 100
    base_star_count: int = 100

    log_level: str = "warning"

    model_config = {"env_prefix": "GALAXY_"}


settings = Settings()
