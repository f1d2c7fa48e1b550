"""
SDD MCP Server Configuration Module.

Handles server settings, feature flags, and template locations.
Uses pydantic-settings for validation and type safety.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_TEMPLATE_DIR = Path(__file__).parent / "templates"


class FeatureFlags(BaseSettings):
    """Feature flags for enabling/disabling tool families."""

    model_config = SettingsConfigDict(env_prefix="FEATURE_")

    analysis: bool = True
    generation: bool = True
    visualization: bool = True
    compliance: bool = True
    workflow: bool = True

    def to_dict(self) -> dict[str, bool]:
        """Return feature flags as dictionary for health endpoint."""
        return {
            "analysis": self.analysis,
            "generation": self.generation,
            "visualization": self.visualization,
            "compliance": self.compliance,
            "workflow": self.workflow,
        }


class TemplateSettings(BaseSettings):
    """Template locations for code generation."""

    model_config = SettingsConfigDict(env_prefix="TEMPLATE_")

    directory: Path = Field(
        default=PACKAGE_TEMPLATE_DIR,
        description="Directory holding the Jinja2 templates",
    )
    contract: str = Field(default="contract.ts.j2")
    stub: str = Field(default="stub.ts.j2")
    test: str = Field(default="integration-test.ts.j2")
    checklist: str = Field(default="implementation-checklist.md.j2")

    def file_for(self, template_type: str) -> str:
        """Template file name for a template type (contract, stub, test, checklist)."""
        key = template_type.lower()
        if key not in ("contract", "stub", "test", "checklist"):
            raise KeyError(f"Unknown template type: {template_type}")
        return getattr(self, key)


class Settings(BaseSettings):
    """Main server settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_log_level: str = "INFO"

    # Server identity (reported during the MCP handshake)
    server_name: str = "sdd-mcp-server"
    server_version: str = "1.0.0"

    # HTTP adapter
    http_host: str = "127.0.0.1"
    http_port: int = 8000

    # Router
    default_timeout_ms: int = Field(
        default=30000,
        ge=0,
        description="Handler timeout applied when a call does not supply one. 0 disables it.",
        validation_alias="ROUTER_DEFAULT_TIMEOUT_MS",
    )

    # Nested settings
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    templates: TemplateSettings = Field(default_factory=TemplateSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.app_env == "production"

    def is_feature_enabled(self, name: str) -> bool:
        """Check a feature flag by name. Unknown flags are disabled."""
        return bool(self.features.to_dict().get(name, False))

    def get_template_path(self, template_type: str) -> Path:
        """Resolve the file path of a template type."""
        return Path(self.templates.directory) / self.templates.file_for(template_type)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
