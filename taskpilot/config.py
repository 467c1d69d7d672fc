"""taskpilot Configuration.

Includes:
- AppConfig: Main settings with environment variable and YAML support
- ParserSettings: Input limits for the intent parser
- ResolverSettings: Fuzzy matching and learning thresholds
- LearningSettings: Eviction policy for the session learning store

Environment Variables:
    TASKPILOT_PROJECT_PATH: Directory holding .taskpilot/config.yaml
    TASKPILOT_PARSER__MAX_INPUT_LENGTH: Longest input parsed before truncation
    TASKPILOT_RESOLVER__FUZZY_THRESHOLD: Minimum raw similarity for fuzzy matches
    TASKPILOT_RESOLVER__AMBIGUITY_MARGIN: Score gap below which results are ambiguous
    TASKPILOT_LEARNING__MAX_ENTRIES_PER_SESSION: Learned selections kept per session
"""

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


class ParserSettings(BaseModel):
    """Intent parser settings.

    Attributes:
        max_input_length: Inputs longer than this are truncated (with a warning)
    """

    max_input_length: int = Field(default=10_000, gt=0)


class ResolverSettings(BaseModel):
    """Semantic entity resolver settings.

    Attributes:
        fuzzy_threshold: Minimum raw similarity for a fuzzy match to count
        ambiguity_margin: Top-two confidence gap below which results are ambiguous
        min_confidence: Top confidence below which disambiguation is required
        max_matches: Matches returned per resolution
        learning_enabled: Whether confirmed selections boost future matches
        learning_boost: Boost per learned selection
        max_learning_boost: Cap on the total learned boost
        near_identical_threshold: Similarity at which past queries count as the same
    """

    fuzzy_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    ambiguity_margin: float = Field(default=0.1, ge=0.0, le=1.0)
    min_confidence: float = Field(default=0.75, ge=0.0, le=1.0)
    max_matches: int = Field(default=10, gt=0)
    learning_enabled: bool = True
    learning_boost: float = Field(default=0.15, ge=0.0, le=1.0)
    max_learning_boost: float = Field(default=0.3, ge=0.0, le=1.0)
    near_identical_threshold: float = Field(default=0.9, ge=0.0, le=1.0)

    @field_validator("max_learning_boost")
    @classmethod
    def _cap_not_below_boost(cls, v: float, info: Any) -> float:
        boost = info.data.get("learning_boost")
        if boost is not None and v < boost:
            raise ValueError("max_learning_boost must be >= learning_boost")
        return v


class LearningSettings(BaseModel):
    """Session learning store eviction policy.

    Attributes:
        max_entries_per_session: Least recently recorded entries are evicted past this
        max_sessions: Least recently used sessions are evicted past this
        ttl_seconds: Entries older than this are dropped (None keeps them)
    """

    max_entries_per_session: int = Field(default=100, gt=0)
    max_sessions: int = Field(default=1000, gt=0)
    ttl_seconds: Optional[float] = Field(default=None, gt=0)


class AppConfig(BaseSettings):
    """Application configuration with environment variable support.

    Configuration is loaded from environment variables with TASKPILOT_ prefix.
    Nested settings use a double underscore, for example
    TASKPILOT_RESOLVER__FUZZY_THRESHOLD sets resolver.fuzzy_threshold.

    Precedence (highest to lowest):
        1. Environment variables (TASKPILOT_*)
        2. Config file (.taskpilot/config.yaml)
        3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKPILOT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    project_path: Path = Field(default_factory=Path.cwd)

    parser: ParserSettings = Field(default_factory=ParserSettings)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    learning: LearningSettings = Field(default_factory=LearningSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over values passed in from the config file
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def load(cls, path: Path) -> "AppConfig":
        """Load configuration from .taskpilot/config.yaml if it exists.

        Args:
            path: Project path to load configuration for

        Returns:
            AppConfig with file values applied (or defaults if no config exists)

        Raises:
            pydantic.ValidationError: If the file holds out-of-range values
        """
        from ruamel.yaml import YAML

        values: dict[str, Any] = {"project_path": path}
        config_file = path / ".taskpilot" / "config.yaml"

        if config_file.exists():
            yaml = YAML(typ="safe")
            with config_file.open() as f:
                data = yaml.load(f)

            if data:
                for section in ("parser", "resolver", "learning"):
                    if section in data and data[section]:
                        values[section] = dict(data[section])

        return cls(**values)

    def save(self) -> None:
        """Save configuration to .taskpilot/config.yaml in the project path."""
        from ruamel.yaml import YAML

        config_dir = self.project_path / ".taskpilot"
        config_dir.mkdir(parents=True, exist_ok=True)
        config_file = config_dir / "config.yaml"

        yaml = YAML()
        yaml.default_flow_style = False

        data = {
            "parser": self.parser.model_dump(),
            "resolver": self.resolver.model_dump(),
            "learning": self.learning.model_dump(),
        }

        with config_file.open("w") as f:
            yaml.dump(data, f)


__all__ = ["AppConfig", "LearningSettings", "ParserSettings", "ResolverSettings"]
