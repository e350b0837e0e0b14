"""
Loads the sandbox configuration from defaults, podbox.yml, .env and the
process environment.
"""
import os
from typing import Any, Dict, Optional
import yaml
from dotenv import dotenv_values
from pydantic import ValidationError
from ..MODELS.sandbox_config import SandboxConfig
from ..UTILS.string_interpolation import EnvironmentInterpolator
from ..errors import ConfigError

CONFIG_FILENAME = "podbox.yml"
ENV_FILENAME = ".env"

# environment variable -> config field
ENV_OVERRIDES = {
    "PODBOX_CONTAINER_NAME": "container_name",
    "PODBOX_IMAGE_NAME": "image_name",
    "PODBOX_IMAGE_TAG": "image_tag",
    "PODBOX_WORKSPACE": "workspace",
    "PODBOX_PORTS": "ports",
}


class ConfigParser:
    """
    Builds a ``SandboxConfig``. Later sources override earlier ones:
    defaults, ``podbox.yml``, ``.env``, then the process environment.
    """
    def __init__(self, environ: Optional[Dict[str, str]] = None):
        """
        :param environ: Environment used for overrides and interpolation.
        """
        self.environ = dict(os.environ) if environ is None else dict(environ)

    def parse(self, base_dir: Optional[str] = None, workspace: Optional[str] = None) -> SandboxConfig:
        """
        Loads the configuration found in ``base_dir``.

        :param base_dir: Directory searched for podbox.yml and .env, defaults to
            the workspace when one is given, else the current directory.
        :param workspace: Explicit workspace, overrides every other source.
        :raises ConfigError: If a file cannot be parsed or a value is invalid.
        """
        base_dir = base_dir or workspace or os.getcwd()
        context = dict(self.environ)

        env_path = os.path.join(base_dir, ENV_FILENAME)
        if os.path.exists(env_path):
            try:
                env_values = dotenv_values(env_path)
            except (OSError, ValueError) as e:
                raise ConfigError(f"Cannot read {env_path}: {e}") from e
            for key, value in env_values.items():
                if value is not None:
                    context.setdefault(key, value)

        data: Dict[str, Any] = {}
        config_path = os.path.join(base_dir, CONFIG_FILENAME)
        if os.path.exists(config_path):
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    content = f.read()
            except (OSError, ValueError) as e:
                raise ConfigError(f"Cannot read {config_path}: {e}") from e
            data = self.parse_from_string(content, context)

        for env_key, field in ENV_OVERRIDES.items():
            if context.get(env_key):
                data[field] = self._coerce(field, context[env_key])

        if workspace:
            data["workspace"] = workspace
        if "workspace" in data:
            data["workspace"] = os.path.abspath(os.path.expanduser(str(data["workspace"])))

        try:
            return SandboxConfig(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def parse_from_string(self, content: str, context: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        Parses YAML configuration text after ${VAR} interpolation.

        :return: Raw configuration mapping.
        """
        interpolator = EnvironmentInterpolator(self.environ if context is None else context)
        content = interpolator.interpolate(content)
        for name in interpolator.missing:
            print(f"Warning: variable {name} is not set, using an empty string")
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {CONFIG_FILENAME}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping")
        return data

    @staticmethod
    def _coerce(field: str, value: str) -> Any:
        if field == "ports":
            try:
                return [int(p) for p in value.replace(",", " ").split()]
            except ValueError as e:
                raise ConfigError(f"Invalid port list: {value}") from e
        return value
