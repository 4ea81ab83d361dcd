"""
Configuration management for the application.
Loads settings from environment variables and the project .env file.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from loguru import logger

# Find project root (where .env and data/ live)
# This file is at lumo/config/settings.py, so project root is 3 levels up
_project_root = Path(__file__).resolve().parent.parent.parent

# Export for use by logger, scripts, etc. - ensures consistent data/ paths
PROJECT_ROOT = _project_root

# Load environment variables from project root
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(dotenv_path=_env_file, override=True)
    logger.debug(f"Loaded .env from: {_env_file}")
else:
    logger.debug(f".env file not found at: {_env_file}, using process environment")


@dataclass
class DatabaseConfig:
    """PostgreSQL (pgvector) database configuration"""
    host: str = field(default_factory=lambda: os.getenv("DB_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("DB_PORT", "5432")))
    user: str = field(default_factory=lambda: os.getenv("DB_USER", "postgres"))
    password: str = field(default_factory=lambda: os.getenv("DB_PWD", ""))
    database: str = field(default_factory=lambda: os.getenv("DB_NAME", "lumo"))

    def get_connection_string(self) -> str:
        """Build PostgreSQL connection string for SQLAlchemy"""
        return (
            f"postgresql+psycopg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # API Keys (empty key = language model disabled, every stage falls back)
    openai_api_key: str = Field(default="")

    # OpenAI Configuration
    openai_model: str = Field(default="gpt-4o-mini")
    openai_temperature: float = Field(default=0.2)
    openai_embedding_model: str = Field(default="text-embedding-3-small")
    embedding_dimensions: int = Field(default=1536)  # Vector width stored in the embeddings table
    max_output_tokens: int = Field(default=4000)

    # Retrieval Configuration
    retrieval_distance_cutoff: float = Field(default=0.6)  # Snippets farther than this are dropped
    project_top_k: int = Field(default=6)
    global_top_k: int = Field(default=8)
    retrieval_max_k: int = Field(default=20)
    snippet_max_chars: int = Field(default=800)
    project_task_limit: int = Field(default=50)
    global_task_limit: int = Field(default=100)

    # Guardrail Configuration
    enable_input_guardrail: bool = Field(default=True)
    enable_output_guardrail: bool = Field(default=True)
    guardrail_history_turns: int = Field(default=6)
    guardrail_history_chars: int = Field(default=2000)

    # Agent Loop Configuration
    agent_history_turns: int = Field(default=6)
    agent_max_tool_calls: int = Field(default=6)  # Hard bound on tool invocations per turn
    chat_history_turns: int = Field(default=9)  # Turns loaded by the project chat endpoint

    # Streaming Configuration
    stream_chunk_size: int = Field(default=120)
    sse_ping_seconds: float = Field(default=15.0)

    # System Configuration
    system_name: str = Field(default="Lumo")
    log_level: str = Field(default="INFO")
    cors_origins: str = Field(default="http://localhost:3000,http://127.0.0.1:3000")  # Comma separated
    dev_user_id: str = Field(default="dev-user")  # Used when the caller supplies no user id

    class Config:
        env_file = str(_project_root / ".env")
        env_file_encoding = "utf-8"
        extra = "allow"  # Allow extra fields from .env


# Create global settings instance
settings = Settings()
