"""Human readable labels for well-known addresses."""

import json
from pathlib import Path

from richlist.helpers.errors import ConfigurationError


# Address -> label. Extend through LABELS_FILE rather than editing here.
KNOWN_LABELS: dict[str, str] = {}


def load_labels(labels_file: str | Path | None = None) -> dict[str, str]:
    """Return the built-in labels merged with an optional JSON file.

    The file must hold a single JSON object mapping addresses to labels;
    file entries override built-in ones.

    Args:
        labels_file: Path of a JSON labels file

    Returns:
        Address to label mapping

    Raises:
        ConfigurationError: If the file is missing or not a string mapping
    """
    labels = dict(KNOWN_LABELS)
    if labels_file is None:
        return labels

    path = Path(labels_file)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        msg = f"Cannot read labels file {path}: {e}"
        raise ConfigurationError(msg) from e

    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        msg = f"Labels file {path} must map address strings to label strings"
        raise ConfigurationError(msg)

    labels.update(data)
    return labels


__all__ = ["KNOWN_LABELS", "load_labels"]
