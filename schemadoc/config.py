"""Configuration management for schemadoc."""

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional


def _find_env_file() -> Optional[str]:
    """Find .env file in multiple locations.

    Search order:
    1. Current working directory
    2. ~/.schemadoc/.env
    """
    if os.path.exists(".env"):
        return ".env"

    user_env = Path.home() / ".schemadoc" / ".env"
    if user_env.exists():
        return str(user_env)

    return None


class Settings(BaseSettings):
    """Application settings loaded from SCHEMADOC_* environment variables."""

    # Generation defaults
    default_dialect: Optional[str] = Field(
        default=None,
        description="Dialect to assume when not given on the command line (postgresql, mysql, sqlite)"
    )
    default_format: str = Field(
        default="dbml",
        description="Output format when not given on the command line (dbml, markdown, mermaid)"
    )
    relational: bool = Field(
        default=False,
        description="Derive relations from relations()/define_relations() instead of foreign keys"
    )

    # Formatter options
    include_comments: bool = Field(
        default=True,
        description="Include table and column comments in the output"
    )
    include_indexes: bool = Field(
        default=True,
        description="Include indexes in the output"
    )
    include_constraints: bool = Field(
        default=True,
        description="Include constraints in Markdown output"
    )
    markdown_relative_links: bool = Field(
        default=True,
        description="Link table references inside Markdown output"
    )

    # Logging
    log_level: str = Field(
        default="WARNING",
        description="Log level used by the CLI (DEBUG, INFO, WARNING, ERROR)"
    )

    class Config:
        env_prefix = "SCHEMADOC_"
        env_file = _find_env_file()
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
