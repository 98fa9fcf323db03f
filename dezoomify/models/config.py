"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import os

from pydantic import BaseModel, Field, field_validator

# Sent with every request; zoom level headers take precedence
DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0"
    ),
    "Accept": "image/webp,image/*,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def default_num_threads() -> int:
    return os.cpu_count() or 1


def _check_bound(v: int | None) -> int | None:
    if v is not None and v <= 0:
        raise ValueError("Size bounds must be positive.")
    return v


class SelectionPolicy(BaseModel):
    """How to pick a zoom level when several are available."""

    largest: bool = False
    max_width: int | None = None
    max_height: int | None = None

    @field_validator("max_width", "max_height")
    @classmethod
    def validate_bound(cls, v: int | None) -> int | None:
        return _check_bound(v)

    @property
    def has_bounds(self) -> bool:
        return self.max_width is not None or self.max_height is not None

    def accepts(self, width: int, height: int) -> bool:
        """True when a size is strictly below every given bound."""
        return (self.max_width is None or width < self.max_width) and (
            self.max_height is None or height < self.max_height
        )


class DezoomConfig(BaseModel):
    """A validated configuration model for a dezoomify run."""

    # Input and output
    input_uri: str | None = None
    outfile: str = "dezoomified.jpg"
    dezoomer: str = "auto"

    # Zoom level selection
    largest: bool = False
    max_width: int | None = None
    max_height: int | None = None

    # Network
    num_threads: int = Field(default_factory=default_num_threads)
    retries: int = 1
    retry_delay: float = 2.0
    timeout: float = 30.0
    headers: dict[str, str] = Field(default_factory=dict)

    # Discovery
    max_probe_steps: int = 64

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("num_threads", mode="before")
    @classmethod
    def validate_threads(cls, v: int | None) -> int:
        """Ensures a reasonable number of workers; None means one per CPU."""
        if v is None or v == 0:
            return default_num_threads()
        v = int(v)
        if v < 1 or v > 256:
            raise ValueError("The number of threads must be between 1 and 256.")
        return v

    @field_validator("retries", "max_probe_steps")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Must not be negative.")
        return v

    @field_validator("timeout", "retry_delay")
    @classmethod
    def validate_duration(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Durations must not be negative.")
        return v

    @field_validator("outfile")
    @classmethod
    def validate_outfile(cls, v: str) -> str:
        if not v:
            raise ValueError("Output file cannot be empty.")
        return v

    @field_validator("max_width", "max_height")
    @classmethod
    def validate_bound(cls, v: int | None) -> int | None:
        return _check_bound(v)

    @property
    def selection_policy(self) -> SelectionPolicy:
        return SelectionPolicy(
            largest=self.largest, max_width=self.max_width, max_height=self.max_height
        )

    @property
    def probe_limit(self) -> int | None:
        return self.max_probe_steps or None

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path", "input_uri", "headers"}
        return {key for key in cls.model_fields if key not in internal_fields}
