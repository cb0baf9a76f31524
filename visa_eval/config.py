"""
Configuration settings for the Visa Eligibility Evaluation Service
"""
from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict


DEFAULT_CONFIG_DIR = str(Path(__file__).parent / "data")


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application Configuration
    app_name: str = Field(default="Visa Eligibility Evaluation Service", env="APP_NAME")
    app_version: str = Field(default="1.0.0", env="APP_VERSION")
    debug: bool = Field(default=False, env="DEBUG")
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    # API Configuration
    api_prefix: str = Field(default="/api/v1", env="API_PREFIX")
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:8080",
        env="CORS_ORIGINS"
    )

    # Versioned evaluation tables
    config_dir: str = Field(default=DEFAULT_CONFIG_DIR, env="CONFIG_DIR")
    rules_file: str = Field(default="rules.json", env="RULES_FILE")
    documents_file: str = Field(default="documents.json", env="DOCUMENTS_FILE")
    e1_eligibility_file: str = Field(default="e1_eligibility.json", env="E1_ELIGIBILITY_FILE")
    visa_profiles_file: str = Field(default="visa_profiles.json", env="VISA_PROFILES_FILE")

    # Status bands shared by every evaluator
    approval_threshold: int = Field(default=70, env="APPROVAL_THRESHOLD")
    conditional_threshold: int = Field(default=50, env="CONDITIONAL_THRESHOLD")

    # Cost estimate (KRW)
    currency: str = Field(default="KRW", env="CURRENCY")
    government_fee: int = Field(default=200000, env="GOVERNMENT_FEE")
    translation_fee: int = Field(default=150000, env="TRANSLATION_FEE")
    apostille_fee: int = Field(default=100000, env="APOSTILLE_FEE")

    def get_cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list"""
        if ',' in self.cors_origins:
            return [origin.strip() for origin in self.cors_origins.split(',')]
        return [self.cors_origins.strip()]

    def config_path(self, file_name: str) -> Path:
        """Resolve a configuration table file inside the config directory"""
        return Path(self.config_dir) / file_name

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


# Create global settings instance
settings = Settings()
