"""Centralized configuration for docs-search using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    Every value can be overridden with a ``DOCS_SEARCH_`` prefixed environment
    variable (for example ``DOCS_SEARCH_CONTENT_DIR``) or through a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCS_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",  # Ignore extra env vars not defined in model
    )

    # Build settings
    content_dir: Path = Field(default=Path("content/docs"), description="Root of the markdown content tree")
    output_file: Path = Field(
        default=Path("public/search-index.json"), description="Where the build writes the search artifact"
    )
    artifact_version: int = Field(default=2, ge=1, description="Version tag written into the artifact")
    content_max_chars: int = Field(default=2000, ge=1, description="Maximum characters of body text per document")
    default_category: str = Field(default="general", min_length=1, description="Category for root-level documents")

    # Artifact location at query time
    public_dir: Path = Field(default=Path("public"), description="Directory static files are served from")
    artifact_path: str = Field(default="/search-index.json", description="Artifact path relative to the site root")
    site_base_url: str = Field(
        default="", description="Base URL of the deployed site; when empty the artifact is read from public_dir"
    )
    fetch_timeout: float = Field(default=10.0, gt=0, description="Artifact fetch timeout in seconds")

    # Query settings
    field_search_limit: int = Field(default=15, ge=1, description="Per-field hits collected before re-ranking")
    result_limit: int = Field(default=10, ge=1, description="Results shown after field-weighted ranking")
    snippet_length: int = Field(default=150, ge=10, description="Content snippet window width in characters")
    snippet_left_context: int = Field(default=40, ge=0, description="Characters kept before the first match")
    highlight_template: str = Field(default="<mark>{}</mark>", description="Template wrapping highlighted text")
    debounce_ms: int = Field(default=150, ge=0, description="Delay after the last keystroke before searching")
    suggested_queries: str = Field(
        default="node,scheduler,ipc,python,simulation",
        description="Comma-separated queries offered while the search box is empty",
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=False, description="Emit structured JSON logs")

    # Observability
    trace_spans: bool = Field(default=False, description="Print OpenTelemetry spans to stderr")
    metrics_file: Path | None = Field(
        default=None, description="Write Prometheus metrics here after a build (textfile collector format)"
    )

    @model_validator(mode="after")
    def _check_snippet_window(self) -> "Settings":
        if self.snippet_left_context >= self.snippet_length:
            raise ValueError("snippet_left_context must be smaller than snippet_length")
        if "{}" not in self.highlight_template:
            raise ValueError("highlight_template must contain a '{}' placeholder")
        return self

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000

    def get_suggested_queries(self) -> list[str]:
        """Get the list of suggested queries (comma-separated)."""
        if not self.suggested_queries:
            return []
        return [term.strip() for term in self.suggested_queries.split(",") if term.strip()]

    def resolve_artifact_location(self) -> str:
        """Return the URL or filesystem path the query engine should load.

        Relative artifact paths are joined onto ``site_base_url`` when one is
        configured, otherwise they are resolved inside ``public_dir``.
        """
        if self.artifact_path.startswith(("http://", "https://")):
            return self.artifact_path
        if self.site_base_url:
            return f"{self.site_base_url.rstrip('/')}/{self.artifact_path.lstrip('/')}"
        return str(self.public_dir / self.artifact_path.lstrip("/"))
