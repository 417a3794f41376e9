from pydantic_settings import BaseSettings
from pathlib import Path
from typing import Optional

# Get the project root directory (parent of the package folder)
PROJECT_ROOT = Path(__file__).parent.parent

class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'macrobius_vocab.db'}"
    
    # Key of the per-learner review blob (mirrors the web client's localStorage key)
    srs_storage_key: str = "macrobius_srs_data"
    
    # Directory used by the JSON file store
    data_dir: str = str(PROJECT_ROOT / "data")
    
    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    
    class Config:
        env_file = str(PROJECT_ROOT / ".env")
        extra = "ignore"

settings = Settings()
