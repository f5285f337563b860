import re
from pathlib import Path

from ghomap.errors import InvalidKey

KEY_PATTERN = re.compile(r'^[a-z][a-z-]*[a-z]$')


def validate_key(key) -> str:
    """Return `key` unchanged if it is kebab-case, else raise `InvalidKey`.

    Keys double as file names, so the pattern also keeps path separators
    and traversal sequences out of the store directory.
    """
    if isinstance(key, str) and KEY_PATTERN.fullmatch(key):
        return key
    raise InvalidKey(key)


def ensure_dir(dirpath: str | Path) -> Path:
    """Create `dirpath` if it does not exist yet and return it."""
    path = Path(dirpath)
    if not path.exists():
        path.mkdir(parents=True, exist_ok=True)
    return path


def json_equal(left, right) -> bool:
    """Compare two JSON values without Python's bool/number coercion.

    `True == 1` holds in Python but not in JSON, so booleans only match
    booleans. Lists and dicts are compared element by element.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(json_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(json_equal(left[k], right[k]) for k in left)
    return type(left) is type(right) and left == right
