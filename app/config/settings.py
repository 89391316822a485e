from typing import Literal, Optional
from urllib.parse import quote_plus

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = Field(default=SecretStr("postgres"))
    database: str = "floresce"
    url_override: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy URL; takes precedence over host/port/credentials.",
    )
    serverless: bool = Field(
        default=True,
        description="If true, disable connection pooling so serverless DBs can pause.",
    )

    @property
    def url(self) -> str:
        """Get database URL"""
        if self.url_override:
            return self.url_override
        username = quote_plus(self.username)
        password = quote_plus(self.password.get_secret_value())
        return (
            "postgresql+asyncpg://"
            f"{username}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class S3Config(BaseSettings):
    """S3 configuration used to read ``s3://`` media locators."""

    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "us-east-1"

    model_config = SettingsConfigDict(
        env_prefix="S3_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class GeminiConfig(BaseSettings):
    """Google Gemini configuration."""

    api_key: SecretStr | None = Field(
        default=None,
        validation_alias="GEMINI_API_KEY",
    )
    model_id: str = Field(
        default="gemini-2.5-flash-lite",
        validation_alias="GEMINI_MODEL",
    )
    max_output_tokens: int = Field(
        default=2048,
        validation_alias="GEMINI_MAX_OUTPUT_TOKENS",
        ge=1,
        le=65536,
    )
    temperature: float = Field(
        default=0.2,
        validation_alias="GEMINI_TEMPERATURE",
        ge=0.0,
        le=2.0,
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class BedrockConfig(BaseSettings):
    """Amazon Bedrock configuration."""

    region: str = Field(
        default="us-east-1",
        validation_alias="BEDROCK_REGION",
    )
    model_id: str = Field(
        default="amazon.nova-lite-v1:0",
        validation_alias="BEDROCK_MODEL_ID",
    )
    max_tokens: int = Field(
        default=2048,
        validation_alias="BEDROCK_MAX_TOKENS",
        ge=1,
        le=10000,
    )
    temperature: float = Field(
        default=0.2,
        validation_alias="BEDROCK_TEMPERATURE",
        ge=0.0,
        le=1.0,
    )
    top_p: float = Field(
        default=0.9,
        validation_alias="BEDROCK_TOP_P",
        ge=0.0,
        le=1.0,
    )
    api_key: SecretStr | None = Field(
        default=None,
        validation_alias="BEDROCK_API_KEY",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class ModelConfig(BaseSettings):
    """Which generative model backs the media analysis pipeline."""

    provider: Literal["gemini", "bedrock"] = "gemini"
    timeout_seconds: float = Field(default=90.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="MODEL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class MediaConfig(BaseSettings):
    """Limits applied when loading media referenced by a request."""

    fetch_timeout_seconds: float = Field(default=30.0, gt=0)
    max_bytes: int = Field(default=20 * 1024 * 1024, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="MEDIA_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class TaxonomyConfig(BaseSettings):
    """Optional override for the pedagogical taxonomy (BNCC fields)."""

    file: Optional[str] = Field(
        default=None,
        description="Path to a JSON file with {version, fields: [{code, label, description}]}.",
    )
    version: str = "bncc-ei-2017"

    model_config = SettingsConfigDict(
        env_prefix="TAXONOMY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Floresce Media Analysis Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"
    pipeline_log_file: str = "logs/media_pipeline.log"
    persist_analysis: bool = True

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # S3
    s3: S3Config = Field(default_factory=S3Config)

    # Generative models
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    bedrock: BedrockConfig = Field(default_factory=BedrockConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)

    # Media + taxonomy
    media: MediaConfig = Field(default_factory=MediaConfig)
    taxonomy: TaxonomyConfig = Field(default_factory=TaxonomyConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=(),
    )


# Global settings instance
settings = Settings()
