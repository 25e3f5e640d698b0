# secret_encryptor/config.py
"""
Run Configuration

Settings are resolved from, in priority order: command-line overrides,
environment variables (a local .env file is loaded first), an optional YAML
file, and built-in defaults.
"""

import os
import re
from dataclasses import dataclass, fields

import yaml
from dotenv import load_dotenv

from .crypto import DEFAULT_TRANSFORMATION
from .exceptions import ConfigurationError
from .loader import DEFAULT_SECRETS_FILE

ENV_PREFIX = "SECRET_ENCRYPTOR_"

# Setting name -> environment variables checked in order
ENV_VARS = {
    "aws_region": [f"{ENV_PREFIX}AWS_REGION", "AWS_REGION"],
    "certificate_secret_name": [f"{ENV_PREFIX}CERT_SECRET_NAME"],
    "cipher_transformation": [f"{ENV_PREFIX}CIPHER_TRANSFORMATION"],
    "secrets_file": [f"{ENV_PREFIX}SECRETS_FILE"],
}

# Setting name -> path of keys in the YAML file
YAML_KEYS = {
    "aws_region": ("aws", "region"),
    "certificate_secret_name": ("certificate", "secret_name"),
    "cipher_transformation": ("cipher", "transformation"),
    "secrets_file": ("secrets_file",),
}


@dataclass
class Settings:
    """
    Everything a run needs to know.

    Attributes:
        aws_region: Region of the Secrets Manager holding every secret.
        certificate_secret_name: Name of the secret holding the PEM certificate.
        cipher_transformation: Algorithm/mode/padding used for encryption.
        secrets_file: JSON file listing the secrets to rotate.
        dry_run: Encrypt but do not write anything back.
    """

    aws_region: str | None = None
    certificate_secret_name: str | None = None
    cipher_transformation: str = DEFAULT_TRANSFORMATION
    secrets_file: str = DEFAULT_SECRETS_FILE
    dry_run: bool = False

    @classmethod
    def load(cls, config_path: str | None = None, env_file: str | None = ".env", **overrides) -> "Settings":
        """
        Resolve settings from every source.

        Args:
            config_path: Optional YAML file.
            env_file: .env file to load into the environment, if it exists.
            **overrides: Values that win over everything else; None is ignored.

        Returns:
            Settings: The merged settings (not yet validated).
        """
        if env_file:
            load_dotenv(env_file)

        values = {}
        if config_path:
            values.update(_from_yaml(_load_yaml(config_path)))
        values.update(_from_env())
        values.update({k: v for k, v in overrides.items() if v is not None})

        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return cls(**values)

    def validate(self) -> "Settings":
        """Raise ConfigurationError naming the first missing required setting."""
        if not self.aws_region or not self.aws_region.strip():
            raise ConfigurationError(
                f"AWS region not configured. Set {ENV_VARS['aws_region'][0]} or pass --region."
            )
        if not self.certificate_secret_name or not self.certificate_secret_name.strip():
            raise ConfigurationError(
                "Public PEM certificate secret name not configured. "
                f"Set {ENV_VARS['certificate_secret_name'][0]} or pass --cert-secret-name."
            )
        if not self.cipher_transformation or not self.cipher_transformation.strip():
            raise ConfigurationError("Cipher transformation must not be empty.")
        return self


def _load_yaml(path: str) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigurationError(f"Could not read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc
    if not isinstance(config, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return expand_env_vars(config)


_ENV_REFERENCE = re.compile(r"\$\{(\w+)\}")

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


def expand_env_vars(obj):
    """
    Recursively replace ``${VAR}`` references with environment values.

    Args:
        obj: A parsed config node (mapping, list, string or scalar).

    Returns:
        The same structure with every ``${VAR}`` whose variable is set
        replaced; unset references and non-string scalars are kept as is.
    """
    if isinstance(obj, dict):
        return {key: expand_env_vars(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [expand_env_vars(item) for item in obj]
    if not isinstance(obj, str):
        return obj
    return _ENV_REFERENCE.sub(lambda ref: os.environ.get(ref.group(1), ref.group(0)), obj)


def parse_bool(value, setting: str) -> bool:
    """
    Interpret a config value as a boolean.

    YAML booleans are taken as they are; strings (what ``${VAR}`` expansion
    produces) must be one of true/false, yes/no, on/off or 1/0.

    Raises:
        ConfigurationError: For any other value.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ConfigurationError(f"Invalid boolean for {setting}: {value!r}")


def _from_yaml(config: dict) -> dict:
    values = {}
    for name, path in YAML_KEYS.items():
        node = config
        for key in path:
            node = node.get(key) if isinstance(node, dict) else None
        if node is not None:
            values[name] = str(node)
    if config.get("dry_run") is not None:
        values["dry_run"] = parse_bool(config["dry_run"], "dry_run")
    return values


def _from_env() -> dict:
    values = {}
    for name, env_vars in ENV_VARS.items():
        for var in env_vars:
            if value := os.environ.get(var):
                values[name] = value
                break
    return values
