"""Settings loading and the validation entrypoint used by CI and the CLI."""

from __future__ import annotations

from pathlib import Path
import yaml
from pydantic import ValidationError

from .config_models import SettingsConfig

ROOT = Path(__file__).resolve().parents[1]
SETTINGS_PATH = ROOT / "config" / "settings.yaml"


def load_yaml(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_settings(path: Path = SETTINGS_PATH) -> SettingsConfig:
    return SettingsConfig.model_validate(load_yaml(path))


def main(path: Path = SETTINGS_PATH) -> None:
    try:
        load_settings(path)
    except ValidationError as exc:
        raise SystemExit(f"Validation failed for {path}:\n{exc}") from exc


if __name__ == "__main__":
    main()
