from typing import Dict

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-pro", validation_alias="GEMINI_MODEL")
	# Vertex configuration
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")

	# Generation config; very low temperature keeps the JSON shape stable
	gemini_temperature: float = Field(default=0.05, validation_alias="GEMINI_TEMPERATURE")
	gemini_max_output_tokens: int = Field(default=4096, validation_alias="GEMINI_MAX_OUTPUT_TOKENS")
	gemini_top_p: float = Field(default=0.9, validation_alias="GEMINI_TOP_P")
	gemini_top_k: int = Field(default=40, validation_alias="GEMINI_TOP_K")
	gemini_timeout_seconds: float = Field(default=120.0, validation_alias="GEMINI_TIMEOUT_SECONDS")

	# Auth configuration (single account via env)
	account: str | None = Field(default=None, validation_alias="ACCOUNT")
	password: str | None = Field(default=None, validation_alias="PASSWORD")
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=24 * 60, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# Minimum seconds between evaluations per client; 0 disables throttling
	rate_limit_seconds: float = Field(default=0, validation_alias="RATE_LIMIT_SECONDS")

	# Optional markdown file with review standards injected into the prompt
	context_path: str | None = Field(default=None, validation_alias="CONTEXT_PATH")
	# Display label/icon per category key, e.g. {"versioning": {"label": "Versioning", "icon": "..."}}
	category_labels: Dict[str, Dict[str, str]] = Field(default_factory=dict, validation_alias="CATEGORY_LABELS")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
