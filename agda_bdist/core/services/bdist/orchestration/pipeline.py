"""
L5 Orchestration — Packaging pipeline.

    probe → {found: download; not-found: build} → package
          → {compress?, bundle?} → verify → publish

Every step runs to completion before the next one starts.  Steps fall
into two classes:

    optional    download and install of a prebuilt bdist, compression,
                ICU bundling, diagnostics.
                Failures are logged and recorded as receipts; the
                pipeline falls back (build instead of download, keep the
                uncompressed executable, skip bundling).
    mandatory   verification.  A failure raises VerificationError and
                nothing is published.

Publishing never raises on partial failure: files that could not be
uploaded are logged and returned in the UploadResult.
"""

from __future__ import annotations

import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path

from agda_bdist.adapters.base import PlatformToolkit
from agda_bdist.adapters.registry import get_toolkit
from agda_bdist.core.context import RuntimeContext
from agda_bdist.core.models.options import BuildOptions
from agda_bdist.core.models.receipt import StepReceipt, UploadResult
from agda_bdist.core.services.bdist.data.constants import (
    AGDA_BIN_NAMES,
    BDIST_RETENTION_DAYS,
    UPX_VERSION,
)
from agda_bdist.core.services.bdist.domain.compatibility import should_compress_exe
from agda_bdist.core.services.bdist.domain.name_template import bdist_name, default_bdist_name
from agda_bdist.core.services.bdist.execution.archive import extract, make_executable
from agda_bdist.core.services.bdist.execution.artifact_store import (
    ArtifactStore,
    LocalArtifactStore,
)
from agda_bdist.core.services.bdist.execution.download import download_file
from agda_bdist.core.services.bdist.execution.smoke_test import VerificationError, smoke_test
from agda_bdist.core.services.bdist.execution.upx import compress_exe, setup_upx

logger = logging.getLogger(__name__)


@dataclass
class PackagingReport:
    """Receipts of one pipeline run, in execution order."""

    receipts: list[StepReceipt] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.status == "skipped")

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    def steps(self, step: str) -> list[StepReceipt]:
        """All receipts recorded for ``step``."""
        return [r for r in self.receipts if r.step == step]

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


class PackagingPipeline:
    """Retrieves or assembles, verifies and publishes one bdist.

    Args:
        context: Platform facts and the package index.
        store: Where :meth:`publish` uploads to.  Defaults to a
            :class:`LocalArtifactStore` under ``<agda-dir>/artifacts``.
        toolkit: Platform operations.  Defaults to the registry's
            toolkit for ``context.os``.
    """

    def __init__(
        self,
        context: RuntimeContext,
        store: ArtifactStore | None = None,
        toolkit: PlatformToolkit | None = None,
    ):
        self.context = context
        self.store = store or LocalArtifactStore(context.agda_dir() / "artifacts")
        self.toolkit = toolkit or get_toolkit(context)
        self.report = PackagingReport()

    def _record(self, receipt: StepReceipt, start: float) -> StepReceipt:
        receipt.duration_ms = int((time.monotonic() - start) * 1000)
        self.report.receipts.append(receipt)
        return receipt

    # ── Probe / download ───────────────────────────────────────

    def probe(self, options: BuildOptions) -> tuple[str, str | None]:
        """Look up a prebuilt bdist.  A miss is not an error.

        Returns:
            ``(name, url)``; ``url`` is None when there is no prebuilt bdist.
        """
        start = time.monotonic()
        name = default_bdist_name(options, self.context)
        url = self.context.package_index.lookup(name)
        if url is None:
            logger.info("Could not find package %s", name)
        else:
            logger.info("Found package %s", name)
        self._record(
            StepReceipt.success("probe", metadata={"name": name, "url": url}),
            start,
        )
        return name, url

    def download(self, options: BuildOptions) -> Path | None:
        """Download the prebuilt bdist, if there is one.

        Network and file-system errors degrade to None, which sends the
        caller down the build branch.
        """
        name, url = self.probe(options)
        start = time.monotonic()
        if url is None:
            self._record(StepReceipt.skip("download", f"No package {name}"), start)
            return None

        logger.info("Downloading package %s from %s", name, url)
        try:
            archive = download_file(url, self.context.agda_dir() / "downloads")
        except Exception as e:
            logger.warning("Failed to download package %s: %s", name, e)
            self._record(StepReceipt.failure("download", str(e)), start)
            return None

        self._record(StepReceipt.success("download", str(archive)), start)
        return archive

    def install_bdist(self, archive: Path, options: BuildOptions) -> Path | None:
        """Unpack a downloaded bdist into the install directory.

        A corrupt or truncated archive degrades to None, like a failed
        download; the partial install directory is removed.
        """
        start = time.monotonic()
        install_dir = self.context.install_dir(options.agda_version)
        try:
            extract(archive, install_dir)
            for exe in self.toolkit.executables(install_dir):
                if exe.is_file():
                    make_executable(exe)
        except Exception as e:
            logger.warning("Failed to install package %s: %s", archive.name, e)
            shutil.rmtree(install_dir, ignore_errors=True)
            self._record(StepReceipt.failure("install", str(e)), start)
            return None
        logger.info("Installed Agda %s to %s", options.agda_version, install_dir)
        self._record(StepReceipt.success("install", str(install_dir)), start)
        return install_dir

    # ── Package ────────────────────────────────────────────────

    def package(self, install_dir: Path, options: BuildOptions) -> Path:
        """Assemble a self-contained bdist directory from an install.

        Copies the executables and the data directory into a fresh
        ``bdist/<name>`` directory, then compresses and bundles ICU where
        the options call for it.  UPX is set up before the name is
        rendered, so ``upx-version`` is available to the template.

        Returns:
            The bdist directory.  Its name is the artifact name.
        """
        upx_exe = None
        if should_compress_exe(options, self.context):
            upx_exe = self._setup_upx()
            if upx_exe is not None:
                options = options.with_updates(upx_version=UPX_VERSION)
        else:
            self._record(StepReceipt.skip("compress", "Compression not enabled"), time.monotonic())

        start = time.monotonic()
        name = bdist_name(options, self.context)
        bdist_dir = self.context.bdist_dir(name)
        shutil.rmtree(bdist_dir, ignore_errors=True)
        bin_dir = bdist_dir / "bin"
        bin_dir.mkdir(parents=True)

        for bin_name in AGDA_BIN_NAMES:
            exe = self.context.exe_name(bin_name)
            shutil.copy2(install_dir / "bin" / exe, bin_dir / exe)
        shutil.copytree(install_dir / "data", bdist_dir / "data")
        self._record(StepReceipt.success("package", str(bdist_dir), metadata={"name": name}), start)

        if upx_exe is not None:
            self._compress(bdist_dir, upx_exe)

        if options.icu_version is not None:
            self._bundle_icu(bdist_dir, options)
        else:
            self._record(StepReceipt.skip("bundle-icu", "Not linked against ICU"), time.monotonic())

        return bdist_dir

    def _setup_upx(self) -> Path | None:
        start = time.monotonic()
        try:
            return setup_upx(self.context, UPX_VERSION)
        except Exception as e:
            logger.warning("Could not set up UPX, skipping compression: %s", e)
            self._record(StepReceipt.failure("compress", f"UPX setup failed: {e}"), start)
            return None

    def _compress(self, bdist_dir: Path, upx_exe: Path) -> None:
        for exe in self.toolkit.executables(bdist_dir):
            start = time.monotonic()
            self.print_needed_libraries(exe)
            result = compress_exe(upx_exe, exe)
            if result["ok"]:
                self._record(StepReceipt.success("compress", str(exe)), start)
            else:
                logger.warning(
                    "Could not compress %s: %s %s",
                    exe.name, result["error"], result.get("stderr", ""),
                )
                self._record(
                    StepReceipt.failure("compress", result["error"], metadata={"exe": str(exe)}),
                    start,
                )
            self.print_needed_libraries(exe)

    def _bundle_icu(self, bdist_dir: Path, options: BuildOptions) -> None:
        start = time.monotonic()
        try:
            bundled = self.toolkit.bundle_icu(bdist_dir, options)
        except Exception as e:
            logger.warning("Could not bundle ICU %s: %s", options.icu_version, e)
            self._record(StepReceipt.failure("bundle-icu", str(e)), start)
            return
        self._record(
            StepReceipt.success(
                "bundle-icu",
                metadata={"files": [str(p) for p in bundled]},
            ),
            start,
        )

    def print_needed_libraries(self, binary: Path) -> str | None:
        """Log the libraries ``binary`` links against.  Never raises."""
        start = time.monotonic()
        try:
            output = self.toolkit.needed_libraries(binary)
        except Exception as e:
            logger.debug("Could not list needed libraries of %s: %s", binary.name, e)
            self._record(StepReceipt.skip("diagnostics", str(e)), start)
            return None
        logger.info("Needed libraries of %s:\n%s", binary.name, output)
        self._record(StepReceipt.success("diagnostics", output), start)
        return output

    # ── Verify / publish ───────────────────────────────────────

    def verify(self, bdist_dir: Path) -> str:
        """Smoke-test the assembled bdist.

        Raises:
            VerificationError: If the bdist is broken.
        """
        start = time.monotonic()
        agda = bdist_dir / "bin" / self.context.exe_name("agda")
        try:
            version = smoke_test(agda, bdist_dir / "data")
        except VerificationError as e:
            logger.error("Verification of %s failed: %s", bdist_dir.name, e)
            self._record(StepReceipt.failure("verify", str(e)), start)
            raise
        self._record(StepReceipt.success("verify", version), start)
        return version

    def publish(self, bdist_dir: Path, name: str) -> UploadResult:
        """Upload every regular file under ``bdist_dir`` as artifact ``name``."""
        start = time.monotonic()
        files = sorted(
            p for p in bdist_dir.rglob("*")
            if p.is_file() and not p.is_symlink()
        )
        result = self.store.upload(name, files, bdist_dir, retention_days=BDIST_RETENTION_DAYS)
        if result.failed_items:
            logger.error("Failed to upload:\n%s", "\n".join(result.failed_items))
            self._record(
                StepReceipt.failure(
                    "publish",
                    f"{len(result.failed_items)} of {len(files)} files failed",
                    metadata={"artifact_name": result.artifact_name},
                ),
                start,
            )
        else:
            logger.info("Uploaded %s (%d files)", result.artifact_name, len(files))
            self._record(
                StepReceipt.success("publish", metadata={"artifact_name": result.artifact_name}),
                start,
            )
        return result

    def upload(self, install_dir: Path, options: BuildOptions) -> UploadResult:
        """Package, verify and publish a freshly built install.

        Raises:
            VerificationError: If the assembled bdist is broken.
        """
        bdist_dir = self.package(install_dir, options)
        self.verify(bdist_dir)
        return self.publish(bdist_dir, bdist_dir.name)
