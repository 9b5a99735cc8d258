"""Configuration management using pydantic-settings."""

import warnings
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


DEFAULT_JWT_SECRET = "change-me-in-production"


class DatabaseSettings(BaseSettings):
    """Database configuration."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_", case_sensitive=False)

    url: str = Field(
        default="sqlite+aiosqlite:///./knowledge_assistant.db",
        description="Database connection URL. Env var: DATABASE_URL",
    )
    pool_size: int = Field(default=5, description="Connection pool size (PostgreSQL only)")
    max_overflow: int = Field(default=10, description="Maximum pool overflow (PostgreSQL only)")
    echo: bool = Field(default=False, description="Echo SQL queries (for debugging)")
    create_tables: bool = Field(
        default=True,
        description="Create missing tables on startup. Env var: DATABASE_CREATE_TABLES",
    )

    @property
    def async_url(self) -> str:
        """Get the database URL in its async driver form."""
        if self.url.startswith("postgresql://"):
            return self.url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if self.url.startswith("postgresql+psycopg2://"):
            return self.url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
        return self.url

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured database is SQLite."""
        return self.async_url.startswith("sqlite")


class GoogleSettings(BaseSettings):
    """Google OAuth client and API configuration."""

    model_config = SettingsConfigDict(env_prefix="GOOGLE_", case_sensitive=False)

    client_id: Optional[str] = Field(default=None, description="OAuth client ID. Env var: GOOGLE_CLIENT_ID")
    client_secret: Optional[str] = Field(
        default=None, description="OAuth client secret. Env var: GOOGLE_CLIENT_SECRET"
    )
    token_uri: str = Field(
        default="https://oauth2.googleapis.com/token",
        description="OAuth token endpoint used for refresh",
    )
    request_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for Drive and Calendar calls. Env var: GOOGLE_REQUEST_TIMEOUT",
    )
    token_expiry_leeway_seconds: int = Field(
        default=60,
        description="Treat tokens expiring within this many seconds as expired",
    )

    @property
    def is_configured(self) -> bool:
        """Check if Google OAuth client credentials are configured."""
        return bool(self.client_id and self.client_secret)


class EmbeddingSettings(BaseSettings):
    """Embedding configuration (OpenAI)."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    openai_api_key: Optional[str] = Field(
        default=None, description="OpenAI API key for embeddings. Env var: OPENAI_API_KEY"
    )
    openai_base_url: Optional[str] = Field(
        default=None, description="Optional OpenAI base URL. Env var: OPENAI_BASE_URL"
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name. Env var: EMBEDDING_MODEL",
    )
    embedding_batch_size: int = Field(
        default=20,
        ge=1,
        description="Maximum texts per embedding request. Env var: EMBEDDING_BATCH_SIZE",
    )
    embedding_timeout: float = Field(
        default=30.0,
        description="Embedding request timeout in seconds. Env var: EMBEDDING_TIMEOUT",
    )
    embedding_max_attempts: int = Field(
        default=1,
        ge=1,
        description="Attempts per embedding request (1 = no retry). Env var: EMBEDDING_MAX_ATTEMPTS",
    )

    @property
    def is_configured(self) -> bool:
        """Check if embeddings are configured."""
        return bool(self.openai_api_key)


class LLMSettings(BaseSettings):
    """Answer and brief generation configuration (LiteLLM)."""

    model_config = SettingsConfigDict(env_prefix="LLM_", case_sensitive=False)

    search_model: str = Field(
        default="anthropic/claude-haiku-4-5",
        description="Model used to answer search queries. Env var: LLM_SEARCH_MODEL",
    )
    brief_model: str = Field(
        default="anthropic/claude-sonnet-4-5",
        description="Model used to write meeting briefs. Env var: LLM_BRIEF_MODEL",
    )
    search_max_tokens: int = Field(default=500, description="Max tokens for search answers")
    brief_max_tokens: int = Field(default=1000, description="Max tokens for meeting briefs")
    temperature: float = Field(default=0.0, ge=0.0, le=2.0, description="Sampling temperature")
    timeout: float = Field(default=60.0, description="Generation request timeout in seconds")
    max_attempts: int = Field(
        default=1, ge=1, description="Attempts per generation call (1 = no retry). Env var: LLM_MAX_ATTEMPTS"
    )
    anthropic_api_key: Optional[str] = Field(
        default=None, description="Anthropic API key. Env var: LLM_ANTHROPIC_API_KEY"
    )
    openai_api_key: Optional[str] = Field(
        default=None, description="OpenAI API key for generation. Env var: LLM_OPENAI_API_KEY"
    )


class ChunkingSettings(BaseSettings):
    """Text chunking configuration (characters)."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    chunk_size: int = Field(default=1600, gt=0, description="Chunk size in characters. Env var: CHUNK_SIZE")
    chunk_overlap: int = Field(
        default=400, ge=0, description="Overlap between chunks in characters. Env var: CHUNK_OVERLAP"
    )

    @model_validator(mode="after")
    def validate_overlap(self) -> "ChunkingSettings":
        """Overlap must be smaller than the chunk size."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("CHUNK_OVERLAP must be less than CHUNK_SIZE")
        return self


class IndexingSettings(BaseSettings):
    """Drive indexing configuration."""

    model_config = SettingsConfigDict(env_prefix="INDEXING_", case_sensitive=False)

    batch_size: int = Field(default=5, ge=1, description="Files processed per call. Env var: INDEXING_BATCH_SIZE")
    max_files: int = Field(
        default=50, ge=1, description="Maximum files listed per run. Env var: INDEXING_MAX_FILES"
    )


class RetrievalSettings(BaseSettings):
    """Similarity search configuration."""

    model_config = SettingsConfigDict(env_prefix="RETRIEVAL_", case_sensitive=False)

    query_match_count: int = Field(default=5, ge=1, description="Top-K for search queries")
    query_threshold: float = Field(default=0.3, description="Similarity threshold for search queries")
    meeting_match_count: int = Field(default=10, ge=1, description="Top-K for meeting briefs")
    meeting_threshold: float = Field(default=0.2, description="Similarity threshold for meeting briefs")
    preview_length: int = Field(default=200, ge=0, description="Characters of chunk text returned as preview")


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_", case_sensitive=False)

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant connection URL, or ':memory:' for an in-process store. Env var: QDRANT_URL",
    )
    api_key: Optional[str] = Field(default=None, description="Qdrant API key (for Qdrant Cloud). Env var: QDRANT_API_KEY")
    timeout: int = Field(default=30, description="Request timeout in seconds")
    collection_name: str = Field(
        default="document_chunks", description="Collection holding every user's chunk vectors"
    )

    @property
    def is_local(self) -> bool:
        """Check if the in-process store is configured."""
        return self.url == ":memory:"


class CalendarSettings(BaseSettings):
    """Calendar sync configuration."""

    model_config = SettingsConfigDict(env_prefix="CALENDAR_", case_sensitive=False)

    lookahead_days: int = Field(default=7, ge=1, description="How far ahead to sync")
    max_events: int = Field(default=20, ge=1, description="Max events per sync")


class JWTSettings(BaseSettings):
    """JWT validation configuration for incoming requests."""

    model_config = SettingsConfigDict(env_prefix="JWT_", case_sensitive=False)

    secret_key: str = Field(default=DEFAULT_JWT_SECRET, description="JWT signing secret")
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    audience: Optional[str] = Field(default=None, description="Expected audience claim, if any")


class CorsSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_", case_sensitive=False)

    origins: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated string). Env var: CORS_ORIGINS",
    )
    allow_credentials: bool = Field(default=True, description="Allow credentials in CORS")
    max_age: int = Field(default=3600, description="CORS preflight cache max age in seconds")

    @property
    def origin_list(self) -> List[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="knowledge-assistant", description="Application name")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment. Env var: ENVIRONMENT"
    )
    debug: bool = Field(default=False, description="Enable debug mode. Env var: DEBUG")
    log_level: str = Field(default="INFO", description="Logging level. Env var: LOG_LEVEL")
    api_v1_prefix: str = Field(default="/api/v1", description="API v1 prefix")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    indexing: IndexingSettings = Field(default_factory=IndexingSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    calendar: CalendarSettings = Field(default_factory=CalendarSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)

    @field_validator("environment", mode="before")
    @classmethod
    def parse_environment(cls, v):
        """Parse environment from string."""
        if isinstance(v, str):
            try:
                return Environment(v.lower())
            except ValueError:
                return Environment.DEVELOPMENT
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    def validate_configuration(self) -> None:
        """Warn about integrations that are not configured."""
        if not self.embedding.is_configured:
            warnings.warn(
                "Embeddings are not configured. Set OPENAI_API_KEY to enable indexing and search.",
                UserWarning,
            )
        if not self.google.is_configured:
            warnings.warn(
                "Google OAuth client is not configured. Expired tokens cannot be refreshed. "
                "Set GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET.",
                UserWarning,
            )

    def validate_production_settings(self) -> None:
        """Validate that production settings are secure."""
        if self.is_production:
            if self.debug:
                raise ValueError("DEBUG must be False in production")
            if self.jwt.secret_key == DEFAULT_JWT_SECRET:
                raise ValueError("JWT_SECRET_KEY must be changed in production")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.validate_configuration()
        _settings.validate_production_settings()
    return _settings
