"""
Tests for the static metadata loaders and the package info cache.
"""

from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from agda_bdist.core.config.loader import (
    ConfigError,
    load_input_spec,
    load_package_index,
    load_package_info_cache,
)
from agda_bdist.core.data import DataRegistry
from agda_bdist.core.models.options import FLAG_NAMES, OPTION_NAMES
from agda_bdist.core.models.package_index import PackageIndex, PackageNotFound, package_key
from agda_bdist.core.models.package_info import PackageInfoCache
from agda_bdist.core.services.bdist.detection.package_info import get_package_info

# ── Bundled data ─────────────────────────────────────────────────────


class TestDataRegistry:
    def test_every_input_is_declared(self):
        spec = DataRegistry().input_spec
        assert set(OPTION_NAMES + FLAG_NAMES) <= set(spec.inputs)

    def test_declared_defaults(self):
        spec = DataRegistry().input_spec
        assert spec.default("agda-version") == "latest"
        assert spec.default("ghc-version-range") == "*"
        assert spec.default("bdist-name") == ""
        assert spec.default("force-build") is None
        assert spec.default("not-an-input") is None

    def test_package_index(self):
        index = PackageIndex(DataRegistry().package_index)
        assert index.lookup("agda-2.6.4-x64-linux").endswith("agda-2.6.4-x64-linux.zip")
        assert index.find_pkg_url("upx", "3.96", "x64", "linux").endswith(".tar.xz")

    def test_package_info(self):
        cache = DataRegistry().package_info_cache
        assert cache.status("2.6.4") == "normal"
        assert cache.status("2.6.4.2") == "deprecated"
        assert "2.6.4.2" not in cache.versions()
        assert "2.6.4.2" in cache.versions(include_deprecated=True)

    def test_alternative_data_dir(self, tmp_path: Path):
        (tmp_path / "action.yml").write_text("inputs:\n  agda-version:\n    default: '2.6.3'\n")
        assert DataRegistry(tmp_path).input_spec.default("agda-version") == "2.6.3"


# ── Loader errors ────────────────────────────────────────────────────


class TestLoaders:
    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_input_spec(tmp_path / "action.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "action.yml"
        path.write_text("inputs: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_input_spec(path)

    def test_yaml_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "action.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_input_spec(path)

    def test_inputs_without_body(self, tmp_path: Path):
        path = tmp_path / "action.yml"
        path.write_text("inputs:\n  force-build:\n")
        assert load_input_spec(path).default("force-build") is None

    def test_package_index_rejects_non_strings(self, tmp_path: Path):
        path = tmp_path / "index.json"
        path.write_text('{"a": "https://x", "b": 1}')
        with pytest.raises(ConfigError, match="Non-string URLs"):
            load_package_index(path)

    def test_package_index_invalid_json(self, tmp_path: Path):
        path = tmp_path / "index.json"
        path.write_text("{")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_package_index(path)

    def test_package_info_wrong_status(self, tmp_path: Path):
        path = tmp_path / "Agda.json"
        path.write_text('{"packageInfo": {"2.6.4": "withdrawn"}, "lastModified": ""}')
        with pytest.raises(ConfigError, match="Invalid package info cache"):
            load_package_info_cache(path)


# ── Package index ────────────────────────────────────────────────────


class TestPackageIndex:
    def test_miss_is_not_an_error(self):
        assert PackageIndex().lookup("agda-2.6.4-x64-linux") is None

    def test_find_pkg_url_miss(self):
        with pytest.raises(PackageNotFound, match="upx-3.96-arm64-darwin"):
            PackageIndex().find_pkg_url("upx", "3.96", "arm64", "darwin")

    def test_is_read_only(self):
        index = PackageIndex({"a": "b"})
        with pytest.raises(TypeError):
            index["c"] = "d"

    def test_package_key(self):
        assert package_key("upx", "3.96", "x64", "linux") == "upx-3.96-x64-linux"


# ── Package info cache ───────────────────────────────────────────────


class TestPackageInfoCache:
    def test_staleness(self):
        cache = PackageInfoCache(last_modified="Wed, 20 Mar 2024 12:21:39 GMT")
        now = datetime(2024, 4, 1, tzinfo=UTC)
        assert not cache.is_stale(timedelta(days=30), now=now)
        assert cache.is_stale(timedelta(days=5), now=now)

    def test_missing_date_is_stale(self):
        assert PackageInfoCache().is_stale(timedelta(days=365))
        assert PackageInfoCache(last_modified="yesterday").is_stale(timedelta(days=365))

    def test_fresh_cache_is_not_refreshed(self):
        cache = PackageInfoCache(last_modified="Wed, 20 Mar 2024 12:21:39 GMT")
        with patch(
            "agda_bdist.core.services.bdist.detection.package_info.fetch_package_info"
        ) as fetch:
            assert get_package_info(cache, max_age=timedelta(days=100000)) is cache
        fetch.assert_not_called()

    def test_refresh_disabled(self):
        cache = PackageInfoCache()
        with patch(
            "agda_bdist.core.services.bdist.detection.package_info.fetch_package_info"
        ) as fetch:
            assert get_package_info(cache, refresh=False) is cache
        fetch.assert_not_called()

    def test_failed_refresh_keeps_cache(self):
        cache = PackageInfoCache()
        with patch(
            "agda_bdist.core.services.bdist.detection.package_info.fetch_package_info",
            return_value=None,
        ):
            assert get_package_info(cache) is cache

    def test_successful_refresh(self):
        fresh = PackageInfoCache(package_info={"2.7.0": "normal"})
        with patch(
            "agda_bdist.core.services.bdist.detection.package_info.fetch_package_info",
            return_value=fresh,
        ):
            assert get_package_info(PackageInfoCache()) is fresh
