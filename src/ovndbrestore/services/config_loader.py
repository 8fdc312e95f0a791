"""Configuration loader for ovndbrestore."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ovndbrestore.errors import RestoreError

DEFAULT_CONFIG_NAME = ".ovndbrestore.yml"


class ConfigLoader:
    """Loads YAML configuration files holding CLI defaults."""

    SUPPORTED_KEYS = {
        "engine",
        "image",
        "prefix",
        "role",
        "helper_script",
        "report_file",
        "ready_attempts",
        "ready_delay_seconds",
        "verbose",
        "log_file",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise RestoreError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise RestoreError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise RestoreError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            raise RestoreError(f"Unknown configuration keys: {', '.join(unknown)}")

        return parsed

    def load_default(self, cwd: str, config_path: Optional[str] = None) -> Dict[str, Any]:
        """Loads ``config_path`` or, when omitted, the default file in ``cwd`` if present."""
        if config_path is None:
            candidate = Path(cwd) / DEFAULT_CONFIG_NAME
            if candidate.exists():
                config_path = str(candidate)
        return self.load(config_path)
