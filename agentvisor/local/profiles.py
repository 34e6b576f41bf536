import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

log = logging.getLogger(__name__)


class ProfileError(Exception):
    """Raised when an agent profile cannot be read or does not describe an agent."""


def load_profile(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Reads an agent profile from disk.

    Only the `name` field is interpreted here; the rest of the profile belongs
    to the agent program and is passed to it by path.

    :param path: Location of the JSON profile.
    :return: The parsed profile.
    :raises ProfileError: If the file is unreadable, not JSON, or has no usable name.
    """
    profile_path = Path(path)
    try:
        raw = profile_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ProfileError(f"Failed to read profile file '{path}': {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ProfileError(f"Failed to parse JSON for profile '{path}': {e}") from e

    if not isinstance(data, dict):
        raise ProfileError(f"Profile '{path}' must contain a JSON object.")

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ProfileError(f"Profile '{path}' has no 'name' field.")

    log.debug(f"Loaded profile '{name}' from {profile_path}")
    return data
