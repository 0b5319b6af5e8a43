"""Runtime configuration: environment settings, snapshot targets, run options."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_MODEL = "openai/gpt-4.1-nano"  # cheapest capable model, $0.10 per 1M input tokens
DEFAULT_DOCUMENT = "README.md"
GITINGEST_SIZE_LIMIT = 50_000

_FALSY = {"", "0", "false", "no", "off"}


class Settings(BaseSettings):
    """
    Environment-driven settings.

    Values come from the process environment. The CLI calls
    ``load_dotenv()`` first, so a ``.env`` file in the working
    directory is honoured too.
    """

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    openai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key"),
        description="Credential for the completion service",
    )
    debug_mode: bool = Field(
        default=False,
        validation_alias=AliasChoices("DEBUG_MODE", "debug_mode"),
        description="Print detailed provider response diagnostics",
    )
    model: str = Field(
        default=DEFAULT_MODEL,
        validation_alias=AliasChoices("REREADME_MODEL", "model"),
        description="LiteLLM model string used for every step",
    )
    request_timeout: float = Field(
        default=600.0,
        validation_alias=AliasChoices("REREADME_TIMEOUT", "request_timeout"),
        description="Completion request timeout in seconds",
    )
    snapshot_size_limit: int = Field(
        default=GITINGEST_SIZE_LIMIT,
        validation_alias=AliasChoices("GITINGEST_SIZE_LIMIT", "snapshot_size_limit"),
        description="Maximum bytes per gitingest snapshot",
    )
    prompts_dir: Path = Field(
        default=PACKAGE_DIR / "prompts",
        validation_alias=AliasChoices("REREADME_PROMPTS_DIR", "prompts_dir"),
        description="Directory holding the per-step instruction files",
    )
    template_path: Path = Field(
        default=PACKAGE_DIR / "templates" / "README_TEMPLATE.md",
        validation_alias=AliasChoices("REREADME_TEMPLATE", "template_path"),
        description="Output-format template injected into every step",
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="text",
        validation_alias=AliasChoices("LOG_FORMAT", "log_format"),
        description="Log output format: 'text' or 'json'",
    )

    @field_validator("debug_mode", mode="before")
    @classmethod
    def parse_debug_mode(cls, v: object) -> bool:
        """Any value except an empty/false-like string turns debug mode on."""
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() not in _FALSY

    @field_validator("snapshot_size_limit")
    @classmethod
    def validate_size_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("GITINGEST_SIZE_LIMIT must be a positive number of bytes")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper


def load_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()


# ---------------------------------------------------------------------------
# Snapshot targets
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SnapshotConfig:
    """One gitingest invocation: which files to include and where to write."""

    size_limit: int
    include: tuple[str, ...]
    exclude: tuple[str, ...]
    output: Path
    source: str = "."

    def __post_init__(self) -> None:
        if self.size_limit <= 0:
            raise ValueError(f"size_limit must be positive, got {self.size_limit}")


DEFAULT_SNAPSHOT_CONFIGS: tuple[SnapshotConfig, ...] = (
    # Application code
    SnapshotConfig(
        size_limit=GITINGEST_SIZE_LIMIT,
        include=("src/", "package.json", "*.ts"),
        exclude=("*.snap", "*generated*"),
        output=Path("gitingest-code.txt"),
    ),
    # Code plus the current README, for LLM-facing summaries
    SnapshotConfig(
        size_limit=GITINGEST_SIZE_LIMIT,
        include=("src/", "package.json", "README.md"),
        exclude=("*.snap", "*generated*"),
        output=Path("gitingest-llm.txt"),
    ),
    # Infrastructure
    SnapshotConfig(
        size_limit=GITINGEST_SIZE_LIMIT,
        include=("tf/", "k8s-tf/", "deployment_manifest.yaml", "package.json"),
        exclude=(".tf*",),
        output=Path("gitingest-tf.txt"),
    ),
)


def default_snapshot_configs(size_limit: int = GITINGEST_SIZE_LIMIT) -> list[SnapshotConfig]:
    """Return the default snapshot targets with *size_limit* applied."""
    return [replace(cfg, size_limit=size_limit) for cfg in DEFAULT_SNAPSHOT_CONFIGS]


# ---------------------------------------------------------------------------
# Per-run options (CLI flags)
# ---------------------------------------------------------------------------

@dataclass
class PipelineOptions:
    """Flags that shape a single pipeline run."""

    input_path: Path = Path(DEFAULT_DOCUMENT)
    output_path: Path = Path(DEFAULT_DOCUMENT)
    interactive: bool = False
    continue_on_error: bool = False
    keep_context: bool = False
    include_external_sources: bool = False
    verbose: bool = False
    snapshot_configs: list[SnapshotConfig] = field(default_factory=default_snapshot_configs)

    @property
    def uses_default_paths(self) -> bool:
        return (
            str(self.input_path) == DEFAULT_DOCUMENT
            and str(self.output_path) == DEFAULT_DOCUMENT
        )
