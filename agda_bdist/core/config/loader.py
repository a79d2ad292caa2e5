"""
Configuration loader — reads static metadata into domain models.

Three documents ship with the package under ``core/data/``:

    action.yml                  declared inputs and their defaults
    package-index.json          bdist / tool key → download URL
    package-info/Agda.json      Hackage version → lifecycle status

Each loader reads its file, validates it against a Pydantic model (or a
plain mapping check), and raises :class:`ConfigError` with the path in
the message when anything is wrong.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml

from agda_bdist.core.models.input_spec import InputSpec
from agda_bdist.core.models.package_info import PackageInfoCache

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when a metadata file is missing or invalid."""


def _read(path: Path) -> str:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e


def load_input_spec(path: Path) -> InputSpec:
    """Load the declared inputs from an ``action.yml``-style file.

    Raises:
        ConfigError: If the file is missing, not YAML, or not a mapping.
    """
    logger.debug("Loading input declarations from %s", path)
    try:
        data = yaml.safe_load(_read(path))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Inputs declared without a body (``force-build:``) load as None.
    inputs = data.get("inputs") or {}
    data["inputs"] = {name: decl or {} for name, decl in inputs.items()}

    try:
        spec = InputSpec.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid input declarations in {path}: {e}") from e

    logger.debug("Loaded %d input declarations", len(spec.inputs))
    return spec


def load_package_index(path: Path) -> dict[str, str]:
    """Load the package index: a flat mapping of key → URL.

    Raises:
        ConfigError: If the file is missing, not JSON, or not a flat
            string-to-string mapping.
    """
    try:
        data = json.loads(_read(path))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    bad = [k for k, v in data.items() if not isinstance(v, str)]
    if bad:
        raise ConfigError(f"Non-string URLs in {path}: {', '.join(sorted(bad))}")

    logger.debug("Loaded %d package index entries from %s", len(data), path)
    return dict(data)


def load_package_info_cache(path: Path) -> PackageInfoCache:
    """Load a package-info cache document.

    Raises:
        ConfigError: If the file is missing, not JSON, or does not match
            the ``{packageInfo, lastModified}`` shape.
    """
    try:
        data = json.loads(_read(path))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    try:
        cache = PackageInfoCache.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid package info cache in {path}: {e}") from e

    logger.debug(
        "Loaded package info for %d versions (last modified %s)",
        len(cache.package_info), cache.last_modified or "unknown",
    )
    return cache
