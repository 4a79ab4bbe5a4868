from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Model used when a solve request does not name one
	gemini_model: str = Field(default="gemini-2.0-flash-lite", validation_alias="GEMINI_MODEL")
	gemini_api_base: str = Field(default="https://generativelanguage.googleapis.com/v1beta", validation_alias="GEMINI_API_BASE")
	# Upper bound for one generate() call, retries included
	gemini_timeout_seconds: float = Field(default=30.0, validation_alias="GEMINI_TIMEOUT_SECONDS")
	# Extra attempts after the first one, only for retryable failures
	gemini_max_retries: int = Field(default=1, validation_alias="GEMINI_MAX_RETRIES")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# Comma separated list of allowed browser origins
	cors_origins: str = Field(default="http://localhost:3000", validation_alias="CORS_ORIGINS")
	prompt_max_length: int = Field(default=2000, validation_alias="PROMPT_MAX_LENGTH")
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# Scoring curve overrides, applied per request by the solve router
	scoring_curvature: float = Field(default=2.0, validation_alias="SCORING_CURVATURE")
	scoring_integer_base_error: float = Field(default=2.0, validation_alias="SCORING_INTEGER_BASE_ERROR")
	scoring_sub_unit_base_error: float = Field(default=0.5, validation_alias="SCORING_SUB_UNIT_BASE_ERROR")
	scoring_reference_relative_error: float = Field(default=0.05, validation_alias="SCORING_REFERENCE_RELATIVE_ERROR")
	scoring_tolerance_floor: float = Field(default=1e-2, validation_alias="SCORING_TOLERANCE_FLOOR")
	scoring_integer_scale_threshold: float = Field(default=1000.0, validation_alias="SCORING_INTEGER_SCALE_THRESHOLD")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def cors_origin_list(self) -> list[str]:
		return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

settings = Settings()
