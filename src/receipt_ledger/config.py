"""
Configuration management (SSOT).

This module defines ALL configuration for receipt-ledger.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- Normalization and date formats are fixed per run (same input, same output)
- Recognition engine choice is the only pluggable piece
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .schemas.receipt import DEFAULT_CATEGORY, EXPENSE_CATEGORIES

ENGINES = ("tesseract", "remote")


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class NormalizerConfig:
    """Image normalization settings."""

    # Output width in pixels; height follows the aspect ratio
    target_width: int = 800
    # Contrast enhancement factor (1.0 = unchanged)
    contrast: float = 2.0


@dataclass
class TesseractConfig:
    """Local Tesseract settings."""

    lang: str = "eng"
    config: str = "--oem 3 --psm 6"
    # Per-receipt process timeout (seconds)
    timeout: int = 30
    # Path to the tesseract binary if it is not on PATH
    cmd: Optional[str] = None


@dataclass
class RemoteOCRConfig:
    """HTTP OCR service settings."""

    url: str = ""
    token: Optional[str] = None
    timeout: int = 30
    max_retries: int = 2


@dataclass
class RecognitionConfig:
    """Recognition engine selection."""

    engine: str = "tesseract"
    tesseract: TesseractConfig = field(default_factory=TesseractConfig)
    remote: RemoteOCRConfig = field(default_factory=RemoteOCRConfig)


@dataclass
class ExtractionConfig:
    """Field extraction settings."""

    # strptime formats tried in order on the matched date token
    date_formats: list[str] = field(default_factory=lambda: ["%d.%m.%y"])
    # Category used when no keyword matches
    default_category: str = DEFAULT_CATEGORY


@dataclass
class Config:
    """Application configuration (SSOT)."""

    normalizer: NormalizerConfig = field(default_factory=NormalizerConfig)
    recognition: RecognitionConfig = field(default_factory=RecognitionConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    state_db_path: Path = field(default_factory=lambda: Path("data/receipts.db"))
    # Concurrent pipeline invocations for batch extraction
    max_workers: int = 4

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if self.normalizer.target_width < 1:
            errors.append("normalizer.target_width must be positive")
        if self.normalizer.contrast < 0:
            errors.append("normalizer.contrast must not be negative")

        if self.recognition.engine not in ENGINES:
            errors.append(
                f"recognition.engine must be one of {', '.join(ENGINES)} "
                f"(got {self.recognition.engine!r})"
            )
        if self.recognition.engine == "remote" and not self.recognition.remote.url:
            errors.append("recognition.remote.url is required when engine is 'remote'")
        if self.recognition.tesseract.timeout < 1:
            errors.append("recognition.tesseract.timeout must be positive")

        if not self.extraction.date_formats:
            errors.append("extraction.date_formats must not be empty")
        if self.extraction.default_category not in EXPENSE_CATEGORIES:
            errors.append(f"extraction.default_category {self.extraction.default_category!r} is unknown")

        if self.max_workers < 1:
            errors.append("max_workers must be positive")

        return errors


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name, "")
    if not value:
        return int(default)
    try:
        return int(value)
    except ValueError:
        raise ConfigValidationError(f"{name} must be an integer (got {value!r})")


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - RECEIPT_OCR_ENGINE (tesseract/remote)
    - RECEIPT_OCR_URL
    - RECEIPT_OCR_TOKEN
    - RECEIPT_OCR_TIMEOUT (seconds, applies to the selected engine)
    - TESSERACT_CMD
    - RECEIPT_STATE_DB
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    if not isinstance(data, dict):
        raise ConfigValidationError(f"{config_path} must contain a mapping at the top level")

    norm_data = data.get("normalizer", {})
    normalizer = NormalizerConfig(
        target_width=norm_data.get("target_width", 800),
        contrast=float(norm_data.get("contrast", 2.0)),
    )

    recog_data = data.get("recognition", {})
    tess_data = recog_data.get("tesseract", {})
    remote_data = recog_data.get("remote", {})
    engine = os.environ.get("RECEIPT_OCR_ENGINE", recog_data.get("engine", "tesseract"))

    tesseract = TesseractConfig(
        lang=tess_data.get("lang", "eng"),
        config=tess_data.get("config", "--oem 3 --psm 6"),
        timeout=tess_data.get("timeout", 30),
        cmd=os.environ.get("TESSERACT_CMD", tess_data.get("cmd")),
    )
    remote = RemoteOCRConfig(
        url=os.environ.get("RECEIPT_OCR_URL", remote_data.get("url", "")),
        token=os.environ.get("RECEIPT_OCR_TOKEN", remote_data.get("token")),
        timeout=remote_data.get("timeout", 30),
        max_retries=remote_data.get("max_retries", 2),
    )
    if engine == "remote":
        remote.timeout = _env_int("RECEIPT_OCR_TIMEOUT", remote.timeout)
    else:
        tesseract.timeout = _env_int("RECEIPT_OCR_TIMEOUT", tesseract.timeout)

    recognition = RecognitionConfig(engine=engine, tesseract=tesseract, remote=remote)

    extract_data = data.get("extraction", {})
    date_formats = extract_data.get("date_formats", ["%d.%m.%y"])
    if isinstance(date_formats, str):
        date_formats = [date_formats]
    extraction = ExtractionConfig(
        date_formats=list(date_formats),
        default_category=extract_data.get("default_category", DEFAULT_CATEGORY),
    )

    state_db = os.environ.get("RECEIPT_STATE_DB", data.get("state_db_path", "data/receipts.db"))

    return Config(
        normalizer=normalizer,
        recognition=recognition,
        extraction=extraction,
        state_db_path=Path(state_db),
        max_workers=data.get("max_workers", 4),
    )


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# receipt-ledger configuration
#
# Environment overrides: RECEIPT_OCR_ENGINE, RECEIPT_OCR_URL, RECEIPT_OCR_TOKEN,
# RECEIPT_OCR_TIMEOUT, TESSERACT_CMD, RECEIPT_STATE_DB

# Image normalization before recognition
normalizer:
  target_width: 800          # Output width (px), height keeps aspect ratio
  contrast: 2.0              # Contrast factor (1.0 = unchanged)

# Text recognition
recognition:
  engine: "tesseract"        # tesseract | remote
  tesseract:
    lang: "eng"
    config: "--oem 3 --psm 6"
    timeout: 30              # Seconds per receipt
    cmd: null                # Path to tesseract binary if not on PATH
  remote:
    url: ""                  # e.g. http://ocr.local:8884/recognize
    token: null
    timeout: 30
    max_retries: 2

# Field extraction
extraction:
  date_formats:              # Tried in order on the matched date token
    - "%d.%m.%y"
  default_category: "Other"  # Used when no category keyword matches

# State database path
state_db_path: "data/receipts.db"

# Concurrent receipts for batch extraction
max_workers: 4
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
