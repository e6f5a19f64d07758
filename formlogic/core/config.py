"""Library configuration loaded from the environment."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings shared by the builder, resolver, evaluator and validators.

    Every component accepts an explicit ``Settings`` instance so tests and
    embedding applications never depend on process-wide state.
    """

    # Evaluation
    default_module_key: str = "current"

    # Code-set resolution
    max_concurrent_code_set_fetches: int = 8
    code_set_fetch_timeout_seconds: float = 10.0

    # Hierarchy metrics
    complexity_field_weight: float = 1.0
    complexity_rule_weight: float = 2.0
    complexity_depth_weight: float = 5.0

    # Module state resolution
    cascade_container_visibility: bool = True

    # Paths
    code_sets_dir: str | None = None
    schema_dir: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="FORMLOGIC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
