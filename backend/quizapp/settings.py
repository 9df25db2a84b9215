from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	# Vertex configuration
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")
	gemini_timeout_seconds: float = Field(default=30.0, validation_alias="GEMINI_TIMEOUT_SECONDS")

	# Retry policy for the generation call
	gemini_max_attempts: int = Field(default=5, ge=1, validation_alias="GEMINI_MAX_ATTEMPTS")
	gemini_base_delay_seconds: float = Field(default=1.0, ge=0, validation_alias="GEMINI_BASE_DELAY_SECONDS")

	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=60, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# Seed accounts, created at startup when both name and password are set
	seed_admin_username: str | None = Field(default=None, validation_alias="SEED_ADMIN_USERNAME")
	seed_admin_password: str | None = Field(default=None, validation_alias="SEED_ADMIN_PASSWORD")
	seed_student_username: str | None = Field(default=None, validation_alias="SEED_STUDENT_USERNAME")
	seed_student_password: str | None = Field(default=None, validation_alias="SEED_STUDENT_PASSWORD")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config; frozen so request handlers can't mutate it
	model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True, populate_by_name=True)

settings = Settings()


def get_settings() -> Settings:
	return settings
