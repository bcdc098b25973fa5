"""SpecAlign - Core Configuration

运行时配置（环境变量 SA_* / .env）
"""
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_data_dir() -> Path:
    return Path.home() / ".specalign"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SA_", env_file=".env", extra="ignore")

    ENV: str = Field(default="dev")
    DATA_DIR: Path = Field(default_factory=_default_data_dir)
    DB_URL: str | None = Field(default=None)

    # Logging
    LOG_DIR: str = Field(default="logs")
    LOG_LEVEL: str = Field(default="INFO")

    # Test execution
    TEST_TIMEOUT_S: int = Field(default=300, ge=1)
    PYTHON_BIN: str | None = Field(default=None)

    # LLM generation
    LLM_API_URL: str = Field(default="https://api.anthropic.com/v1/messages")
    LLM_MODEL: str = Field(default="claude-sonnet-4-20250514")
    LLM_FALLBACK_MODELS: list[str] = Field(
        default_factory=lambda: [
            "claude-sonnet-4-20250514",
            "claude-sonnet-3-5-20241022",
            "claude-3-5-sonnet-20241022",
        ]
    )
    LLM_TIMEOUT_S: float = Field(default=90.0)
    LLM_MAX_TOKENS: int = Field(default=2048)

    @property
    def database_url(self) -> str:
        """优先使用 SA_DB_URL，否则落到数据目录下的 SQLite 文件"""
        if self.DB_URL:
            return self.DB_URL
        return f"sqlite:///{self.DATA_DIR / 'specalign.db'}"


settings = Settings()
