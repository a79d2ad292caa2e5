"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

# Architecture name normalization.
#
# Bdist names and package-index keys use the Node-style identifiers that
# the published artifacts were originally named with (x64, arm64, ia32),
# not Go-style (amd64) or raw ``uname -m`` (x86_64) names.
_ARCH_MAP: dict[str, str] = {
    "x86_64": "x64",
    "amd64": "x64",
    "AMD64": "x64",        # Windows
    "aarch64": "arm64",
    "arm64": "arm64",      # macOS (Darwin reports arm64)
    "i386": "ia32",
    "i686": "ia32",
    "x86": "ia32",
}

# ``sys.platform`` → (os family, platform identifier used in names).
_PLATFORM_MAP: dict[str, tuple[str, str]] = {
    "linux": ("linux", "linux"),
    "darwin": ("macos", "darwin"),
    "win32": ("windows", "win32"),
}

# Executables produced by an Agda build, in copy order.
AGDA_BIN_NAMES: tuple[str, ...] = ("agda", "agda-mode")

# Default distribution name.  Parsed once at option-resolution time.
BDIST_NAME_DEFAULT_TEMPLATE = "agda-{{{agda-version}}}-{{{arch}}}-{{{platform}}}"

# Fields a bdist-name template may refer to.
NAME_TEMPLATE_FIELDS: frozenset[str] = frozenset({
    "agda-version",
    "ghc-version",
    "cabal-version",
    "stack-version",
    "icu-version",
    "upx-version",
    "arch",
    "platform",
    "release",
})

# Raw flag values that resolve to False.  Everything else is True,
# including "0", "no" and "False".
FALSY_FLAG_VALUES: tuple[object, ...] = (None, "", False, "false")

# Artifact retention passed to the artifact store.
BDIST_RETENTION_DAYS = 90

# UPX release used for executable compression.
UPX_VERSION = "3.96"

HACKAGE_URL = "https://hackage.haskell.org"

# Prebuilt ICU releases.  macOS installs ICU through Homebrew instead.
ICU_DOWNLOADS: dict[tuple[str, str], dict[str, str]] = {
    ("windows", "67.1"): {
        "url": "https://github.com/unicode-org/icu/releases/download/release-67-1/icu4c-67_1-Win64-MSVC2017.zip",
        "root": "icu4c-67_1-Win64-MSVC2017",
    },
    ("windows", "71.1"): {
        "url": "https://github.com/unicode-org/icu/releases/download/release-71-1/icu4c-71_1-Win64-MSVC2019.zip",
        "root": "icu4c-71_1-Win64-MSVC2019",
    },
    ("linux", "67.1"): {
        "url": "https://github.com/unicode-org/icu/releases/download/release-67-1/icu4c-67_1-Ubuntu18.04-x64.tgz",
        "root": "",
    },
    ("linux", "71.1"): {
        "url": "https://github.com/unicode-org/icu/releases/download/release-71-1/icu4c-71_1-Ubuntu20.04-x64.tgz",
        "root": "",
    },
}

# Build timeout tiers (seconds).  Agda is a "huge" build.
BUILD_TIMEOUT_TIERS: dict[str, int] = {
    "small": 300,
    "medium": 600,
    "large": 1200,
    "huge": 7200,
}
