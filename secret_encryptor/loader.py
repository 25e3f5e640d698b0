"""Load the list of secret names to rotate from a JSON file."""

import json
import logging
from pathlib import Path

from .exceptions import InputSecretsError
from .models import InputSecrets

logger = logging.getLogger(__name__)

DEFAULT_SECRETS_FILE = "secrets.json"


def load_input_secrets(path: str | Path = DEFAULT_SECRETS_FILE) -> InputSecrets:
    """Read ``{"secrets": [...]}`` from ``path``.

    An absent or empty ``secrets`` list yields an empty InputSecrets. Repeated
    names are dropped after their first occurrence.

    Raises:
        InputSecretsError: If the file is missing, is not valid JSON, or the
            ``secrets`` entry is not a list of strings.
    """
    path = Path(path)
    logger.info("Loading input secret identifiers from %s...", path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise InputSecretsError(f"Input secrets file not found: {path}") from exc
    except UnicodeDecodeError as exc:
        raise InputSecretsError(f"Input secrets file {path} is not valid UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise InputSecretsError(f"Invalid JSON format in {path}: {exc}") from exc
    except OSError as exc:
        raise InputSecretsError(f"Could not read input secrets file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise InputSecretsError(f"Input secrets file {path} must contain a JSON object")

    names = data.get("secrets")
    if not names:
        logger.warning("Loaded secrets file, but it contained no secret identifiers.")
        return InputSecrets()
    if not isinstance(names, list) or not all(isinstance(n, str) and n for n in names):
        raise InputSecretsError(f"'secrets' in {path} must be a list of non-empty strings")

    unique = list(dict.fromkeys(names))
    if len(unique) != len(names):
        logger.warning("Dropped %d duplicate secret identifiers.", len(names) - len(unique))

    logger.info("Successfully loaded %d secret identifiers.", len(unique))
    return InputSecrets(secrets=unique)
