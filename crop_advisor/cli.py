"""
Village Crop Advisor — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Build the village profile (flags or ``--profile`` JSON file).
  4. Load the record store and run the query.
  5. Report result to stdout.

Install and run::

    pip install -e .
    crop-advisor --help
    crop-advisor validate-config
    crop-advisor load-data
    crop-advisor predict --village Wardha --soil black_soil --rainfall 900 --crop cotton
    crop-advisor confidence --profile village.json
    crop-advisor fertilizer --crop maize --soil sandy
    crop-advisor plan --profile village.json --offline --output outputs/plan.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="crop-advisor",
    help="Village Crop Advisor — data-driven crop and adaptation planning CLI.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from crop_advisor.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from crop_advisor.utils.logging import configure_logging
    configure_logging(config.logging)


def _apply_policy(config, policy: Optional[str]):
    """Return ``config`` with ``--policy`` applied, exiting on a bad value."""
    if policy is None:
        return config
    if policy not in ("degrade", "strict"):
        typer.echo(f"[ERROR] Unknown policy '{policy}'. Use degrade or strict.", err=True)
        raise typer.Exit(code=1)
    engine = config.engine.model_copy(update={"policy": policy})
    return config.model_copy(update={"engine": engine})


def _build_profile(
    profile_file: Optional[str],
    village: Optional[str],
    soil: Optional[str],
    rainfall: Optional[float],
    crops: Optional[list[str]],
    latitude: Optional[float],
    longitude: Optional[float],
):
    """Build a ``VillageProfile`` from a JSON file, overridden by flags."""
    from pydantic import ValidationError

    from crop_advisor.models.profile import VillageProfile

    raw: dict = {}
    if profile_file:
        try:
            with open(profile_file, encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            typer.echo(f"[ERROR] Could not read profile: {exc}", err=True)
            raise typer.Exit(code=1)
        if not isinstance(raw, dict):
            typer.echo("[ERROR] Profile JSON must contain an object.", err=True)
            raise typer.Exit(code=1)

    overrides = {
        "village": village,
        "soil_type": soil,
        "annual_rainfall": rainfall,
        "crops_current": crops or None,
        "latitude": latitude,
        "longitude": longitude,
    }
    raw.update({k: v for k, v in overrides.items() if v is not None})
    raw.setdefault("village", "Unnamed village")

    try:
        return VillageProfile(**raw)
    except ValidationError as exc:
        typer.echo(f"[ERROR] Invalid profile: {exc}", err=True)
        raise typer.Exit(code=1)


def _load_predictor(config):
    from crop_advisor.engine.predictor import build_predictor
    from crop_advisor.store.record_store import RecordStore

    store = RecordStore()
    if not store.load(config.data):
        typer.echo(
            f"[WARN] Some datasets failed to load: {', '.join(store.last_load.failed)}",
            err=True,
        )
    return build_predictor(store, config)


# Shared option declarations for the profile-taking commands.
ProfileOpt = typer.Option(None, "--profile", "-p", help="Village profile JSON file.")
VillageOpt = typer.Option(None, "--village", help="Village name.")
SoilOpt = typer.Option(None, "--soil", help="Soil type, e.g. black_soil.")
RainfallOpt = typer.Option(None, "--rainfall", help="Annual rainfall in mm.")
CropOpt = typer.Option(None, "--crop", help="Currently grown crop. Repeatable.")
LatOpt = typer.Option(None, "--lat", help="Latitude in decimal degrees.")
LonOpt = typer.Option(None, "--lon", help="Longitude in decimal degrees.")
PolicyOpt = typer.Option(None, "--policy", help="Override matching policy (degrade|strict).")
ConfigOpt = typer.Option(None, "--config", help="Path to TOML config file.")


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Agricultural file: {config.data.agricultural_file}")
    typer.echo(f"  Crop trials file:  {config.data.crop_trials_file}")
    typer.echo(f"  Fertilizer file:   {config.data.fertilizer_file}")
    typer.echo(f"  Rainfall file:     {config.data.rainfall_file}")
    typer.echo(f"  Matching policy:   {config.engine.policy}")
    typer.echo(f"  Ladder tiers:      {len(config.engine.ladder)}")
    typer.echo(f"  Plan model:        {config.planner.model}")
    typer.echo(f"  Log level:         {config.logging.level}")
    typer.echo(f"  Debug mode:        {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("load-data")
def load_data(config_path: Optional[str] = ConfigOpt) -> None:
    """Parse every dataset and report per-table counts and dropped rows.

    Exits with code 1 if any configured file could not be read.
    """
    from crop_advisor.store.record_store import RecordStore

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    store = RecordStore()
    ok = store.load(config.data)
    summary = store.last_load

    for table in ("agricultural", "crop_trials", "fertilizers", "rainfall"):
        if table in summary.failed:
            typer.echo(f"  {table:<13} FAILED")
        elif table in summary.loaded:
            typer.echo(
                f"  {table:<13} {summary.loaded[table]:>6} rows "
                f"({summary.dropped.get(table, 0)} dropped)"
            )
        else:
            typer.echo(f"  {table:<13} not configured")

    typer.echo("")
    if not ok:
        typer.echo("[ERROR] Some datasets could not be loaded.", err=True)
        raise typer.Exit(code=1)
    typer.echo("[OK] Data loaded.")


@app.command("predict")
def predict(
    profile_file: Optional[str] = ProfileOpt,
    village: Optional[str] = VillageOpt,
    soil: Optional[str] = SoilOpt,
    rainfall: Optional[float] = RainfallOpt,
    crop: Optional[list[str]] = CropOpt,
    lat: Optional[float] = LatOpt,
    lon: Optional[float] = LonOpt,
    policy: Optional[str] = PolicyOpt,
    config_path: Optional[str] = ConfigOpt,
) -> None:
    """Recommend up to three crops for a village profile."""
    from crop_advisor.engine.errors import InsufficientDataError

    config = _apply_policy(_load_config_or_exit(config_path), policy)
    _configure_logging(config)
    profile = _build_profile(profile_file, village, soil, rainfall, crop, lat, lon)
    predictor = _load_predictor(config)

    try:
        crops = predictor.predict_optimal_crops(profile)
    except InsufficientDataError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Recommended crops for {profile.village} ({config.engine.policy} policy):")
    for i, c in enumerate(crops, start=1):
        typer.echo(
            f"  {i}. {c.name:<12} plant {c.planting_date:<18} | {c.irrigation_schedule} | "
            f"yield +{c.expected_yield_improvement} | risk {c.risk_factor}"
        )


@app.command("confidence")
def confidence(
    profile_file: Optional[str] = ProfileOpt,
    village: Optional[str] = VillageOpt,
    soil: Optional[str] = SoilOpt,
    rainfall: Optional[float] = RainfallOpt,
    crop: Optional[list[str]] = CropOpt,
    lat: Optional[float] = LatOpt,
    lon: Optional[float] = LonOpt,
    policy: Optional[str] = PolicyOpt,
    config_path: Optional[str] = ConfigOpt,
) -> None:
    """Report the confidence score, its breakdown and data-quality advice."""
    from crop_advisor.engine.errors import InsufficientDataError

    config = _apply_policy(_load_config_or_exit(config_path), policy)
    _configure_logging(config)
    profile = _build_profile(profile_file, village, soil, rainfall, crop, lat, lon)
    predictor = _load_predictor(config)

    try:
        breakdown = predictor.get_confidence_breakdown(profile)
        validation = predictor.validate_prediction_confidence(profile)
    except InsufficientDataError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    level = "HIGH" if validation.is_high_confidence else "standard"
    typer.echo(f"Confidence for {profile.village}: {breakdown.overall}% ({level})")
    for name in ("rainfall", "soil", "crops"):
        dim = getattr(breakdown, name)
        typer.echo(f"  {name:<9} {dim.score:>3}%  {dim.description}")
    typer.echo("")
    for line in validation.recommendations:
        typer.echo(f"  - {line}")


@app.command("fertilizer")
def fertilizer(
    crop: str = typer.Option(..., "--crop", help="Crop type, e.g. maize."),
    soil: str = typer.Option(..., "--soil", help="Soil type, e.g. sandy."),
    config_path: Optional[str] = ConfigOpt,
) -> None:
    """List up to three fertilizers used for a crop or soil type."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    predictor = _load_predictor(config)

    names = predictor.get_fertilizer_recommendations(crop, soil)
    if not names:
        typer.echo(f"No fertilizer records match crop '{crop}' or soil '{soil}'.")
        return
    typer.echo(f"Fertilizers for {crop} on {soil}:")
    for name in names:
        typer.echo(f"  - {name}")


@app.command("plan")
def plan(
    profile_file: Optional[str] = ProfileOpt,
    village: Optional[str] = VillageOpt,
    soil: Optional[str] = SoilOpt,
    rainfall: Optional[float] = RainfallOpt,
    crop: Optional[list[str]] = CropOpt,
    lat: Optional[float] = LatOpt,
    lon: Optional[float] = LonOpt,
    policy: Optional[str] = PolicyOpt,
    offline: bool = typer.Option(
        False,
        "--offline",
        help="Skip the plan service and produce the templated plan.",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the plan (with budget breakdowns) to this JSON file.",
    ),
    config_path: Optional[str] = ConfigOpt,
) -> None:
    """Generate adaptation strategies for a village.

    \b
    Credential setup (.env, gitignored):
      GEMINI_API_KEY=...   → enables the generative plan service

    Without a key, or if the service fails, the templated plan is returned.
    """
    from crop_advisor.engine.errors import InsufficientDataError
    from crop_advisor.planning.composer import PlanComposer
    from crop_advisor.planning.export import export_plan_json

    config = _apply_policy(_load_config_or_exit(config_path), policy)
    _configure_logging(config)
    profile = _build_profile(profile_file, village, soil, rainfall, crop, lat, lon)
    predictor = _load_predictor(config)

    composer = PlanComposer(predictor, config.planner)
    try:
        result = composer.compose(profile, offline=offline)
    except InsufficientDataError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    source = "templated fallback" if result.is_fallback else config.planner.model
    typer.echo(f"Plan {result.id} for {profile.village} ({source})")
    typer.echo(f"  {result.regional_context}")
    for s in result.strategies:
        typer.echo("")
        typer.echo(f"  [{s.label}] {s.focus}")
        typer.echo(f"    Investment: INR {s.total_investment:,.0f} | success {s.confidence_score}%")
        typer.echo(f"    Crops: {', '.join(c.name for c in s.crops)}")
        typer.echo(f"    Structures: {', '.join(st.name for st in s.structures) or '-'}")

    if output:
        path = export_plan_json(result, Path(output))
        typer.echo("")
        typer.echo(f"[OK] Plan written to {path}")


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
