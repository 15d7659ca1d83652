"""Configuration loading and strict validation.

Settings are resolved from (lowest to highest precedence) an optional YAML
file, the control variables in the environment, and explicit overrides
passed by the CLI.
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
import yaml

from envinject.exceptions import ValidationError, ConfigurationError


logger = logging.getLogger(__name__)

DEFAULT_PREFIX_VAR = 'APP_PREFIX'
DEFAULT_ROOTS_VAR = 'ASSET_DIRS'
ON_ERROR_CHOICES = ('stop', 'continue')


@dataclass
class Configuration:
    """Resolved settings for a single invocation."""
    prefix: str
    roots: List[Path]
    on_error: str = 'stop'
    follow_symlinks: bool = False
    mask_values: bool = False
    timeout: Optional[float] = None
    dry_run: bool = False
    prefix_var: str = DEFAULT_PREFIX_VAR
    roots_var: str = DEFAULT_ROOTS_VAR


def split_roots(value: Any) -> List[str]:
    """Split a roots setting into individual paths.

    Strings are split on whitespace, like the shell launchers that set
    them. Lists are taken as given.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if str(item).strip()]
    raise TypeError(f"roots must be a string or list, got {type(value).__name__}")


class ConfigLoader:
    """Resolves and validates a Configuration."""

    KNOWN_FIELDS = {
        'prefix', 'roots', 'prefix_var', 'roots_var', 'on_error',
        'follow_symlinks', 'mask_values', 'timeout'
    }

    def __init__(self):
        self.errors: List[ValidationError] = []

    def load_file(self, config_path: Path) -> Dict[str, Any]:
        """Load the YAML settings file."""
        try:
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            self._add_error(f"Failed to load config file: {e}", str(config_path))
            self._raise_validation_errors()

        if data is None:
            return {}
        if not isinstance(data, dict):
            self._add_error("Config file must be a YAML mapping", str(config_path))
            self._raise_validation_errors()

        for key in data.keys():
            if key not in self.KNOWN_FIELDS:
                self._add_error(f"Unknown field '{key}'", str(config_path))

        return data

    def resolve(
        self,
        environ: Mapping[str, str],
        config_path: Optional[Path] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> Configuration:
        """
        Build the Configuration for this invocation.

        Args:
            environ: Environment to read control variables from
            config_path: Optional YAML settings file
            overrides: Explicit values (None entries are ignored)

        Returns:
            Validated Configuration

        Raises:
            ConfigurationError: If the prefix or roots are missing, or any
                setting is invalid
        """
        self.errors = []
        settings: Dict[str, Any] = {}

        if config_path is not None:
            settings.update(self.load_file(Path(config_path)))

        prefix_var = self._pick('prefix_var', settings, overrides) or DEFAULT_PREFIX_VAR
        roots_var = self._pick('roots_var', settings, overrides) or DEFAULT_ROOTS_VAR
        for name, value in (('prefix_var', prefix_var), ('roots_var', roots_var)):
            if not isinstance(value, str):
                self._add_error(f"'{name}' must be a string")

        # Control variables override the file; explicit overrides win over both
        if isinstance(prefix_var, str) and environ.get(prefix_var):
            settings['prefix'] = environ[prefix_var]
        if isinstance(roots_var, str) and environ.get(roots_var):
            settings['roots'] = environ[roots_var]
        if overrides:
            settings.update({k: v for k, v in overrides.items() if v is not None})

        prefix = settings.get('prefix')
        if not prefix:
            self._add_error(
                f"{prefix_var} must be set to a non-empty prefix (e.g. {prefix_var}='APP_PREFIX_')",
                'prefix'
            )
        elif not isinstance(prefix, str):
            self._add_error(f"'prefix' must be a string, got {type(prefix).__name__}", 'prefix')

        roots: List[Path] = []
        try:
            for root in split_roots(settings.get('roots')):
                path = Path(root)
                if path not in roots:
                    roots.append(path)
        except TypeError as e:
            self._add_error(str(e), 'roots')
        else:
            if not roots:
                self._add_error(
                    f"{roots_var} must be set to one or more paths (space-delimited)",
                    'roots'
                )

        on_error = settings.get('on_error', 'stop')
        if on_error not in ON_ERROR_CHOICES:
            self._add_error(f"'on_error' must be one of {list(ON_ERROR_CHOICES)}, got '{on_error}'")

        for flag in ('follow_symlinks', 'mask_values', 'dry_run'):
            if flag in settings and not isinstance(settings[flag], bool):
                self._add_error(f"'{flag}' must be a boolean")

        timeout = settings.get('timeout')
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                self._add_error(f"'timeout' must be a number of seconds, got {timeout!r}")
            elif not math.isfinite(timeout):
                self._add_error(f"'timeout' must be a finite number of seconds, got {timeout}")
            elif timeout <= 0:
                self._add_error(f"'timeout' must be positive, got {timeout}")

        if self.errors:
            self._raise_validation_errors()

        config = Configuration(
            prefix=prefix,
            roots=roots,
            on_error=on_error,
            follow_symlinks=settings.get('follow_symlinks', False),
            mask_values=settings.get('mask_values', False),
            timeout=float(timeout) if timeout is not None else None,
            dry_run=settings.get('dry_run', False),
            prefix_var=prefix_var,
            roots_var=roots_var,
        )
        logger.debug(f"Resolved configuration: prefix={config.prefix!r} roots={[str(r) for r in config.roots]}")
        return config

    @staticmethod
    def _pick(name: str, settings: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> Any:
        if overrides and overrides.get(name) is not None:
            return overrides[name]
        return settings.get(name)

    def _add_error(self, message: str, path: str = ""):
        """Add a validation error."""
        self.errors.append(ValidationError(message=message, path=path))

    def _raise_validation_errors(self):
        """Raise ConfigurationError with the collected errors."""
        raise ConfigurationError(self.errors)
