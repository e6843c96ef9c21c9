"""Configuration values consumed by the scanning engine."""

from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_STALE_KEYWORDS = [
    "TODO",
    "FIXME",
    "HACK",
    "XXX",
    "WA",
    "workaround",
    "temporary",
    "temp",
    "WIP",
    "blocked",
    "waiting",
    "upstream",
]

# Comment leaders per language; None disables scanning, "*" is the fallback
DEFAULT_FILETYPES: dict[str, list[str] | None] = {
    "lua": ["--"],
    "python": ["#"],
    "go": ["//"],
    "javascript": ["//"],
    "typescript": ["//"],
    "typescriptreact": ["//"],
    "javascriptreact": ["//"],
    "rust": ["//"],
    "nix": ["#"],
    "c": ["//"],
    "cpp": ["//"],
    "java": ["//"],
    "ruby": ["#"],
    "sh": ["#"],
    "bash": ["#"],
    "zsh": ["#"],
    "yaml": ["#"],
    "toml": ["#"],
    "sql": ["--"],
    "lisp": [";"],
    "*": ["#", "//"],
}

# Languages whose comments may also be /* ... */ blocks
BLOCK_COMMENT_LANGUAGES = frozenset(
    {
        "c",
        "cpp",
        "go",
        "java",
        "javascript",
        "javascriptreact",
        "typescript",
        "typescriptreact",
        "rust",
        "nix",
        "css",
        "*",
    }
)


class ResolvedConfig(BaseSettings):
    """Engine settings, read from RESOLVED_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RESOLVED_", env_ignore_empty=True, extra="ignore"
    )

    enabled: bool = Field(True, description="Initial enabled state")
    cache_ttl: int = Field(300, description="Cache TTL in seconds")
    debounce_ms: int = Field(500, description="Debounce delay in milliseconds")
    include_prs: bool = Field(True, description="Whether to include pull requests")
    stale_keywords: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_STALE_KEYWORDS),
        description="Keywords marking a comment as a workaround",
    )
    tracker_host: str = Field("github.com", description="Host matched in URLs")
    batch_size: int = Field(20, description="Files scanned concurrently per batch")
    max_file_size: int = Field(
        1024 * 1024, description="Files larger than this many bytes are skipped"
    )
    progress_throttle_ms: int = Field(
        500, description="Minimum interval between progress reports"
    )
    max_concurrency: int = Field(8, description="Concurrent tracker fetches")
    fetch_timeout: float = Field(30.0, description="Seconds allowed per fetch")
    git_timeout: float = Field(30.0, description="Seconds allowed for git ls-files")
    filetypes: dict[str, list[str] | None] = Field(
        default_factory=lambda: dict(DEFAULT_FILETYPES),
        description="Comment leaders per language",
    )

    @field_validator("cache_ttl", "batch_size", "max_file_size", "max_concurrency")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("debounce_ms", "progress_throttle_ms")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be non-negative")
        return v

    @field_validator("fetch_timeout", "git_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("stale_keywords", mode="before")
    @classmethod
    def validate_stale_keywords(cls, v: Any) -> Any:
        """Accept a comma separated string and reject empty keywords."""
        if isinstance(v, str):
            v = [part.strip() for part in v.split(",")]
        if isinstance(v, list) and any(
            not isinstance(k, str) or not k.strip() for k in v
        ):
            raise ValueError("stale keywords must be non-empty strings")
        return v

    @field_validator("tracker_host")
    @classmethod
    def validate_tracker_host(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v or "/" in v or " " in v:
            raise ValueError(f"invalid tracker host '{v}'")
        return v

    @classmethod
    def from_env(cls, **overrides: Any) -> "ResolvedConfig":
        """Build a config from the environment plus command line overrides.

        Overrides set to None are treated as not given.
        """
        return cls(**{k: v for k, v in overrides.items() if v is not None})

    def comment_leaders(self, language: str | None) -> list[str] | None:
        """Get comment leaders for a language, falling back to the wildcard.

        Returns None when scanning is disabled for the language.
        """
        if language and language in self.filetypes:
            return self.filetypes[language]
        return self.filetypes.get("*")

    def has_block_comments(self, language: str | None) -> bool:
        if language and language in self.filetypes:
            return language in BLOCK_COMMENT_LANGUAGES
        return "*" in BLOCK_COMMENT_LANGUAGES
