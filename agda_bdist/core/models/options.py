"""
BuildOptions — the fully resolved configuration of one run.

Produced once by the options resolver and never mutated afterwards.
Later pipeline steps (ICU setup, UPX setup, GHC selection) derive new
records with :meth:`BuildOptions.with_updates`.

Field aliases are the input names declared in ``action.yml``
(``agda-version``, ``force-build``, …).  Templates and the input lookup
use the aliases; Python code uses the attribute names.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agda_bdist.core.models.package_info import PackageInfoCache

# Inputs forwarded to the GHC installer.
SETUP_HASKELL_OPTIONS: tuple[str, ...] = (
    "cabal-version",
    "ghc-version",
    "stack-version",
)
SETUP_HASKELL_FLAGS: tuple[str, ...] = (
    "disable-matcher",
    "enable-stack",
    "stack-no-global",
    "stack-setup-ghc",
)

# Free-text inputs.
OPTION_NAMES: tuple[str, ...] = (
    "agda-version",
    "bdist-name",
    "ghc-version-range",
    *SETUP_HASKELL_OPTIONS,
)

# Boolean inputs.
FLAG_NAMES: tuple[str, ...] = (
    "bdist-compress-exe",
    "bdist-upload",
    "disable-cluster-counting",
    "force-build",
    "force-no-build",
    "ghc-version-match-exact",
    *SETUP_HASKELL_FLAGS,
)


class BuildOptions(BaseModel):
    """Resolved build options for one Agda version on one platform."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # ── Options ──
    agda_version: str = Field("", alias="agda-version")
    bdist_name: str = Field("", alias="bdist-name")
    ghc_version_range: str = Field("*", alias="ghc-version-range")
    cabal_version: str = Field("latest", alias="cabal-version")
    ghc_version: str = Field("latest", alias="ghc-version")
    stack_version: str = Field("latest", alias="stack-version")

    # ── Flags ──
    bdist_compress_exe: bool = Field(False, alias="bdist-compress-exe")
    bdist_upload: bool = Field(False, alias="bdist-upload")
    disable_cluster_counting: bool = Field(False, alias="disable-cluster-counting")
    force_build: bool = Field(False, alias="force-build")
    force_no_build: bool = Field(False, alias="force-no-build")
    ghc_version_match_exact: bool = Field(False, alias="ghc-version-match-exact")
    disable_matcher: bool = Field(False, alias="disable-matcher")
    enable_stack: bool = Field(False, alias="enable-stack")
    stack_no_global: bool = Field(False, alias="stack-no-global")
    stack_setup_ghc: bool = Field(False, alias="stack-setup-ghc")

    # ── Derived ──
    extra_include_dirs: tuple[str, ...] = Field((), alias="extra-include-dirs")
    extra_lib_dirs: tuple[str, ...] = Field((), alias="extra-lib-dirs")
    ghc_supported_versions: tuple[str, ...] = Field((), alias="ghc-supported-versions")

    # ── Populated by later preparatory steps ──
    icu_version: str | None = Field(None, alias="icu-version")
    upx_version: str | None = Field(None, alias="upx-version")
    package_info_cache: PackageInfoCache | None = Field(None, alias="package-info-cache")

    def with_updates(self, **changes: Any) -> BuildOptions:
        """Return a copy with the given attributes replaced."""
        return self.model_copy(update=changes)

    def get(self, name: str) -> Any:
        """Look up a field by its input name (``"agda-version"``)."""
        for attr, info in type(self).model_fields.items():
            if info.alias == name:
                return getattr(self, attr)
        raise KeyError(name)

    def to_inputs(self) -> dict[str, str | bool]:
        """The options and flags as raw inputs, keyed by input name.

        Feeding the result back into the resolver reproduces this record.
        """
        inputs: dict[str, str | bool] = {}
        for name in OPTION_NAMES + FLAG_NAMES:
            inputs[name] = self.get(name)
        return inputs


class SetupHaskellInputs(BaseModel):
    """The subset of options the GHC installer understands."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    cabal_version: str = Field("latest", alias="cabal-version")
    ghc_version: str = Field("latest", alias="ghc-version")
    stack_version: str = Field("latest", alias="stack-version")
    disable_matcher: bool = Field(False, alias="disable-matcher")
    enable_stack: bool = Field(False, alias="enable-stack")
    stack_no_global: bool = Field(False, alias="stack-no-global")
    stack_setup_ghc: bool = Field(False, alias="stack-setup-ghc")
