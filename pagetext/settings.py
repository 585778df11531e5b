"""Project settings and the per-call extraction configuration.

Module-level constants are process-wide defaults.  Per-call options live on
:class:`ExtractionConfig`, a frozen pydantic model that is safe to share
between threads.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator

# ---------------------------------------------------------------------------
# Extraction defaults
# ---------------------------------------------------------------------------
# Minimum cleaned-text length (characters) for a locator tier to qualify
DEFAULT_MIN_EXTRACTED_SIZE = 250

# ---------------------------------------------------------------------------
# Fetch defaults
# ---------------------------------------------------------------------------
DEFAULT_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 2
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (compatible; pagetext/0.1; +https://github.com/pagetext/pagetext)"
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


class OutputFormat(str, Enum):
    TEXT = "text"
    HTML = "html"
    JSON = "json"
    XML = "xml"
    MARKDOWN = "markdown"


class ExtractionConfig(BaseModel):
    """Options for a single extraction call.

    Instances are immutable; derive variants with ``model_copy(update=...)``.
    """

    model_config = {"frozen": True}

    # Content
    include_links: bool = True
    include_images: bool = False
    include_tables: bool = True
    # Tags from the cleaner's removal set that should be kept (e.g. "iframe")
    keep_tags: frozenset[str] = Field(default_factory=frozenset)
    min_extracted_size: int = Field(default=DEFAULT_MIN_EXTRACTED_SIZE, ge=0)
    # Drop "References", "See also" and similar trailing sections; always on
    # for Wikipedia pages
    skip_reference_sections: bool = False

    # Metadata
    extract_metadata: bool = True

    # Output
    output_format: OutputFormat = OutputFormat.TEXT

    # Fetch collaborator
    timeout: int = Field(default=DEFAULT_TIMEOUT, gt=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    user_agent: str = DEFAULT_USER_AGENT

    @field_validator("keep_tags", mode="before")
    @classmethod
    def lower_keep_tags(cls, v: object) -> object:
        if isinstance(v, (list, tuple, set, frozenset)):
            return frozenset(str(t).strip().lower() for t in v if str(t).strip())
        return v
