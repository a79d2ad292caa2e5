"""
Domain models — Pydantic types for agda-bdist.

All models are re-exported here for convenient access:

    from agda_bdist.core.models import BuildOptions, PackageInfoCache, StepReceipt
"""

from agda_bdist.core.models.input_spec import InputDecl, InputSpec
from agda_bdist.core.models.options import (
    FLAG_NAMES,
    OPTION_NAMES,
    BuildOptions,
    SetupHaskellInputs,
)
from agda_bdist.core.models.package_index import PackageIndex, PackageNotFound, package_key
from agda_bdist.core.models.package_info import PackageInfoCache, PackageStatus
from agda_bdist.core.models.receipt import StepReceipt, UploadResult

__all__ = [
    # input_spec.py
    "InputDecl",
    "InputSpec",
    # options.py
    "BuildOptions",
    "FLAG_NAMES",
    "OPTION_NAMES",
    "SetupHaskellInputs",
    # package_index.py
    "PackageIndex",
    "PackageNotFound",
    "package_key",
    # package_info.py
    "PackageInfoCache",
    "PackageStatus",
    # receipt.py
    "StepReceipt",
    "UploadResult",
]
