"""
L2 Resolver — Build options resolution.

Turns raw inputs (from any :mod:`input_lookup` source) into a validated,
frozen :class:`BuildOptions`.  All configuration errors surface here,
before any pipeline work starts.

Resolution rules:
    - Options are trimmed.  Absent or empty values fall back to the
      default declared in ``action.yml``, then to ``""``.
    - Flags are True unless the raw value is one of ``None``, ``""``,
      ``False`` or ``"false"``.  ``"0"``, ``"no"`` and ``"False"`` are
      all True.
"""

from __future__ import annotations

import logging
from typing import Any

from agda_bdist.core.data import DataRegistry
from agda_bdist.core.models.input_spec import InputSpec
from agda_bdist.core.models.options import (
    FLAG_NAMES,
    OPTION_NAMES,
    SETUP_HASKELL_FLAGS,
    SETUP_HASKELL_OPTIONS,
    BuildOptions,
    SetupHaskellInputs,
)
from agda_bdist.core.models.package_info import PackageInfoCache
from agda_bdist.core.services.bdist.data.constants import (
    BDIST_NAME_DEFAULT_TEMPLATE,
    FALSY_FLAG_VALUES,
)
from agda_bdist.core.services.bdist.domain import simver
from agda_bdist.core.services.bdist.domain.name_template import (
    TemplateSyntaxError,
    normalize_template,
    parse_template,
)
from agda_bdist.core.services.bdist.domain.version_range import valid_range
from agda_bdist.core.services.bdist.resolver.input_lookup import (
    InputLookup,
    InputSource,
    as_lookup,
)

logger = logging.getLogger(__name__)


class OptionsError(ValueError):
    """Raised when the inputs are invalid or contradict each other."""


def _resolve_option(lookup: InputLookup, spec: InputSpec, name: str) -> str:
    raw = lookup.lookup(name)
    value = "" if raw is None else str(raw).strip()
    if value == "":
        value = spec.default(name) or ""
    return value


def _resolve_flag(lookup: InputLookup, name: str) -> bool:
    raw = lookup.lookup(name)
    # Strings compare by value, None/False by identity (so 0 is True).
    return not any(
        raw == falsy if isinstance(falsy, str) else raw is falsy
        for falsy in FALSY_FLAG_VALUES
    )


def _validate(options: BuildOptions) -> BuildOptions:
    if options.agda_version == "":
        raise OptionsError('Input "agda-version" is required')
    if options.agda_version == "nightly":
        raise OptionsError('Value "nightly" for input "agda-version" is unsupported')
    if options.ghc_version != "latest":
        raise OptionsError('Input "ghc-version" is unsupported. Use "ghc-version-range"')
    if not valid_range(options.ghc_version_range):
        raise OptionsError('Input "ghc-version-range" is not a valid version range')
    if options.force_build and options.force_no_build:
        raise OptionsError('Inputs "force-build" and "force-no-build" are mutually exclusive')

    if options.bdist_name == "":
        parse_template(BDIST_NAME_DEFAULT_TEMPLATE)
        return options

    bdist_name = normalize_template(options.bdist_name)
    try:
        parse_template(bdist_name)
    except TemplateSyntaxError as e:
        raise OptionsError(f"Could not parse bdist-name, '{bdist_name}':\n{e}") from e
    return options.with_updates(bdist_name=bdist_name)


def resolve_options(
    inputs: InputSource = None,
    input_spec: InputSpec | None = None,
) -> BuildOptions:
    """Resolve and validate build options.

    Args:
        inputs: A mapping, a callable, an :class:`InputLookup`, or None
            (all defaults).
        input_spec: Declared inputs; defaults to the bundled ``action.yml``.

    Returns:
        Frozen BuildOptions.  Derived and late fields are empty/None.

    Raises:
        OptionsError: If any validation rule fails.
    """
    lookup = as_lookup(inputs)
    spec = input_spec if input_spec is not None else DataRegistry().input_spec

    values: dict[str, Any] = {}
    for name in OPTION_NAMES:
        values[name] = _resolve_option(lookup, spec, name)
    for name in FLAG_NAMES:
        values[name] = _resolve_flag(lookup, name)

    options = _validate(BuildOptions.model_validate(values))
    logger.debug("Resolved options: %s", options.to_inputs())
    return options


def pick_setup_haskell_inputs(options: BuildOptions) -> SetupHaskellInputs:
    """The subset of ``options`` forwarded to the GHC installer."""
    return SetupHaskellInputs.model_validate(
        {name: options.get(name) for name in SETUP_HASKELL_OPTIONS + SETUP_HASKELL_FLAGS}
    )


def resolve_agda_version(options: BuildOptions, cache: PackageInfoCache) -> BuildOptions:
    """Replace ``agda-version: latest`` by the newest normal release.

    Also warns when the requested version is deprecated on Hackage, and
    records ``cache`` on the returned options.

    Raises:
        OptionsError: If ``latest`` is requested and the cache knows no
            normal release.
    """
    version = options.agda_version
    if version == "latest":
        candidates = [v for v in cache.versions() if simver.is_valid(v)]
        if not candidates:
            raise OptionsError("Could not resolve Agda version 'latest': no releases known")
        version = max(candidates, key=simver.sort_key)
        logger.info("Resolved Agda version 'latest' to %s", version)
    else:
        status = cache.status(version)
        if status is None:
            logger.warning("Agda version %s is not in the package info cache", version)
        elif status == "deprecated":
            logger.warning("Agda version %s is deprecated", version)
    return options.with_updates(agda_version=version, package_info_cache=cache)
