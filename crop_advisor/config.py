"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``CROP_ADVISOR_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Predictors, the record store and the plan composer all receive sections of
an ``AppConfig`` instance — never raw dicts or scattered env var lookups.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

MatchPolicy = Literal["degrade", "strict"]

# ── Sub-config models ─────────────────────────────────────────────────────────


class DataConfig(BaseModel):
    """Filesystem paths for the historical datasets.

    Any path may be empty, in which case that record table stays empty.
    """

    model_config = ConfigDict(frozen=True)

    agricultural_file: str = "data/agricultural_records.csv"
    crop_trials_file: str = "data/Crop_recommendation.csv"
    fertilizer_file: str = "data/data_core.csv"
    rainfall_file: str = "data/Rainfall_Data_LL.csv"


class ToleranceTier(BaseModel):
    """One rung of the matching ladder.

    ``soil`` selects the soil constraint: ``"exact"``, ``"similar"`` or
    ``"any"``.
    """

    model_config = ConfigDict(frozen=True)

    rainfall_mm: float
    soil: Literal["exact", "similar", "any"]
    min_rating: float


class EngineConfig(BaseModel):
    """Matching policy and tolerance thresholds.

    ``policy = "degrade"`` widens tolerances through ``ladder`` and never
    raises for thin data. ``policy = "strict"`` applies a single fixed
    match and raises ``InsufficientDataError`` below the minimums.
    """

    model_config = ConfigDict(frozen=True)

    policy: MatchPolicy = "degrade"
    min_candidates: int = 3
    max_recommendations: int = 3
    ladder: list[ToleranceTier] = [
        ToleranceTier(rainfall_mm=200.0, soil="exact", min_rating=3.0),
        ToleranceTier(rainfall_mm=400.0, soil="exact", min_rating=3.0),
        ToleranceTier(rainfall_mm=400.0, soil="similar", min_rating=3.0),
        ToleranceTier(rainfall_mm=600.0, soil="any", min_rating=4.0),
    ]
    top_performer_min_rating: float = 4.0
    top_performer_limit: int = 10
    success_rate_rainfall_mm: float = 300.0

    # Strict policy
    strict_rainfall_mm: float = 50.0
    strict_temperature_range: tuple[float, float] = (15.0, 40.0)
    strict_ph_range: tuple[float, float] = (5.0, 8.5)
    strict_min_rainfall_matches: int = 10

    @field_validator("min_candidates", "max_recommendations", "top_performer_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be >= 1, got {v}.")
        return v

    @field_validator("ladder")
    @classmethod
    def validate_ladder(cls, v: list[ToleranceTier]) -> list[ToleranceTier]:
        if not v:
            raise ValueError("Tolerance ladder must have at least one tier.")
        return v


class ConfidenceConfig(BaseModel):
    """Weights and clamps for the confidence score."""

    model_config = ConfigDict(frozen=True)

    rainfall_weight: float = 0.60
    soil_weight: float = 0.25
    crop_weight: float = 0.15
    rainfall_tolerances_mm: list[float] = [200.0, 400.0, 600.0]
    # Match counts at which each sub-score saturates at 1.0.
    rainfall_full_count: int = 20
    soil_full_count: int = 10
    crop_full_points: int = 15
    floor: int = 25
    ceiling: int = 95
    strict_floor: int = 40
    high_confidence_threshold: int = 70

    @model_validator(mode="after")
    def validate_weights(self) -> "ConfidenceConfig":
        total = self.rainfall_weight + self.soil_weight + self.crop_weight
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Confidence weights must sum to 1.0, got {total:.3f}.")
        if not 0 <= self.floor <= self.ceiling <= 100:
            raise ValueError(
                f"Need 0 <= floor ({self.floor}) <= ceiling ({self.ceiling}) <= 100."
            )
        if len(self.rainfall_tolerances_mm) != 3:
            raise ValueError("rainfall_tolerances_mm must list exactly 3 widths.")
        return self


class PlannerConfig(BaseModel):
    """Generative plan service settings.

    The API key itself is never stored in TOML; ``api_key_env`` names the
    environment variable (usually set in ``.env``) that holds it.
    """

    model_config = ConfigDict(frozen=True)

    model: str = "gemini-1.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    api_key_env: str = "GEMINI_API_KEY"
    timeout_seconds: float = 60.0
    strategy_count: int = 3

    @property
    def api_key(self) -> Optional[str]:
        return os.environ.get(self.api_key_env) or None


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth."""

    model_config = ConfigDict(frozen=True)

    data: DataConfig = DataConfig()
    engine: EngineConfig = EngineConfig()
    confidence: ConfidenceConfig = ConfidenceConfig()
    planner: PlannerConfig = PlannerConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply CROP_ADVISOR_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply CROP_ADVISOR_* env vars to the raw config dict.

    Supported overrides:
      CROP_ADVISOR_POLICY     → raw["engine"]["policy"]
      CROP_ADVISOR_DATA_DIR   → prefixes every [data] file name
      CROP_ADVISOR_LOG_LEVEL  → raw["logging"]["level"]
      CROP_ADVISOR_DEBUG      → raw["debug"]
    """
    if policy := os.environ.get("CROP_ADVISOR_POLICY"):
        raw.setdefault("engine", {})["policy"] = policy.lower()

    if data_dir := os.environ.get("CROP_ADVISOR_DATA_DIR"):
        data = raw.setdefault("data", {})
        for key in DataConfig.model_fields:
            name = data.get(key, getattr(DataConfig(), key))
            if name:
                data[key] = str(Path(data_dir) / Path(name).name)

    if log_level := os.environ.get("CROP_ADVISOR_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("CROP_ADVISOR_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        data=DataConfig(**raw.get("data", {})),
        engine=EngineConfig(**raw.get("engine", {})),
        confidence=ConfidenceConfig(**raw.get("confidence", {})),
        planner=PlannerConfig(**raw.get("planner", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
