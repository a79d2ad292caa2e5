"""
Tests for build option resolution and validation.
"""

import logging
from unittest.mock import patch

import pytest

from agda_bdist.core.models.input_spec import InputSpec
from agda_bdist.core.models.options import BuildOptions
from agda_bdist.core.models.package_info import PackageInfoCache
from agda_bdist.core.services.bdist.resolver.icu_version import (
    icu_version_for,
    resolve_icu_version,
)
from agda_bdist.core.services.bdist.resolver.input_lookup import (
    CallableLookup,
    EnvironmentLookup,
    MappingLookup,
    as_lookup,
)
from agda_bdist.core.services.bdist.resolver.options_resolver import (
    OptionsError,
    pick_setup_haskell_inputs,
    resolve_agda_version,
    resolve_options,
)

# ── Input lookup ─────────────────────────────────────────────────────


class TestInputLookup:
    def test_mapping(self):
        assert MappingLookup({"agda-version": "2.6.4"}).lookup("agda-version") == "2.6.4"
        assert MappingLookup().lookup("agda-version") is None

    def test_callable(self):
        lookup = CallableLookup(lambda name: name.upper())
        assert lookup.lookup("arch") == "ARCH"

    def test_environment(self):
        env = {"INPUT_AGDA-VERSION": "2.6.3", "INPUT_SOME_INPUT": "x"}
        lookup = EnvironmentLookup(env)
        assert lookup.lookup("agda-version") == "2.6.3"
        assert lookup.lookup("some input") == "x"
        assert lookup.lookup("force-build") is None

    def test_as_lookup(self):
        lookup = MappingLookup()
        assert as_lookup(lookup) is lookup
        assert isinstance(as_lookup(None), MappingLookup)
        assert isinstance(as_lookup({"a": "b"}), MappingLookup)
        assert isinstance(as_lookup(lambda name: None), CallableLookup)
        with pytest.raises(TypeError):
            as_lookup(42)


# ── Options ──────────────────────────────────────────────────────────


class TestResolveOptions:
    def test_defaults_from_action_yml(self):
        options = resolve_options({})
        assert options.agda_version == "latest"
        assert options.ghc_version_range == "*"
        assert options.ghc_version == "latest"
        assert options.cabal_version == "latest"
        assert options.bdist_name == ""
        assert options.force_build is False
        assert options.extra_lib_dirs == ()
        assert options.icu_version is None

    def test_options_are_trimmed(self):
        options = resolve_options({"agda-version": "  2.6.4\n"})
        assert options.agda_version == "2.6.4"

    def test_empty_option_uses_default(self):
        assert resolve_options({"ghc-version-range": "  "}).ghc_version_range == "*"

    def test_custom_input_spec(self):
        spec = InputSpec.model_validate({"inputs": {
            "agda-version": {"default": "2.6.3"},
            "ghc-version": {"default": "latest"},
        }})
        options = resolve_options({}, input_spec=spec)
        assert options.agda_version == "2.6.3"
        # Undeclared options fall back to the empty string.
        assert options.cabal_version == ""

    @pytest.mark.parametrize("raw", [None, "", False, "false"])
    def test_falsy_flag_values(self, raw):
        assert resolve_options({"force-build": raw}).force_build is False

    @pytest.mark.parametrize("raw", ["0", "no", "False", "FALSE", "true", True, "off", " "])
    def test_everything_else_is_true(self, raw):
        assert resolve_options({"force-build": raw}).force_build is True

    def test_callable_source(self):
        values = {"agda-version": "2.6.4", "enable-stack": "true"}
        options = resolve_options(values.get)
        assert options.agda_version == "2.6.4"
        assert options.enable_stack is True

    def test_environment_source(self):
        env = {"INPUT_AGDA-VERSION": "2.6.4", "INPUT_BDIST-UPLOAD": "true"}
        options = resolve_options(EnvironmentLookup(env))
        assert options.agda_version == "2.6.4"
        assert options.bdist_upload is True

    def test_resolution_is_idempotent(self):
        options = resolve_options({
            "agda-version": "2.6.4",
            "bdist-name": "agda - {{{agda-version}}}",
            "ghc-version-range": ">=9.2 <9.6",
            "bdist-compress-exe": "0",
            "force-no-build": "",
            "stack-setup-ghc": "yes",
        })
        assert resolve_options(options.to_inputs()) == options

    def test_result_is_frozen(self):
        options = resolve_options({})
        with pytest.raises(Exception):
            options.agda_version = "2.6.4"


class TestValidation:
    def test_nightly_is_rejected(self):
        with pytest.raises(OptionsError, match="nightly"):
            resolve_options({"agda-version": "nightly"})

    def test_missing_agda_version_is_rejected(self):
        spec = InputSpec.model_validate({"inputs": {"ghc-version": {"default": "latest"}}})
        with pytest.raises(OptionsError, match='"agda-version" is required'):
            resolve_options({}, input_spec=spec)

    def test_ghc_version_is_rejected(self):
        with pytest.raises(OptionsError, match="ghc-version-range"):
            resolve_options({"ghc-version": "9.2.8"})

    def test_invalid_range_is_rejected(self):
        with pytest.raises(OptionsError, match="not a valid version range"):
            resolve_options({"ghc-version-range": "nine point two"})

    def test_force_build_and_no_build_conflict(self):
        with patch(
            "agda_bdist.core.services.bdist.resolver.options_resolver.parse_template"
        ) as parse:
            with pytest.raises(OptionsError, match="mutually exclusive"):
                resolve_options({
                    "force-build": "true",
                    "force-no-build": "true",
                    "bdist-name": "{{#unclosed",
                })
        assert parse.call_count == 0

    def test_bdist_name_whitespace_is_removed(self):
        options = resolve_options({"bdist-name": " agda-{{{ agda-version }}} - {{{arch}}} "})
        assert options.bdist_name == "agda-{{{agda-version}}}-{{{arch}}}"

    def test_bdist_name_parse_error(self):
        with pytest.raises(OptionsError) as excinfo:
            resolve_options({"bdist-name": "agda-{{user name}}"})
        message = str(excinfo.value)
        assert message.startswith("Could not parse bdist-name, 'agda-{{username}}':\n")
        assert "Unknown field 'username'" in message

    def test_empty_bdist_name_is_kept(self):
        assert resolve_options({"bdist-name": ""}).bdist_name == ""


# ── Derived options ──────────────────────────────────────────────────


class TestDerivedOptions:
    def test_pick_setup_haskell_inputs(self):
        options = resolve_options({"enable-stack": "true", "stack-version": "2.9.3"})
        inputs = pick_setup_haskell_inputs(options)
        assert inputs.enable_stack is True
        assert inputs.stack_version == "2.9.3"
        assert inputs.ghc_version == "latest"
        assert set(inputs.model_dump(by_alias=True)) == {
            "cabal-version", "disable-matcher", "enable-stack", "ghc-version",
            "stack-no-global", "stack-setup-ghc", "stack-version",
        }

    def test_latest_agda_version(self):
        cache = PackageInfoCache(package_info={
            "2.6.3": "normal",
            "2.6.4": "normal",
            "2.6.4.2": "deprecated",
        })
        options = resolve_agda_version(BuildOptions(agda_version="latest"), cache)
        assert options.agda_version == "2.6.4"
        assert options.package_info_cache is cache

    def test_latest_without_releases(self):
        with pytest.raises(OptionsError):
            resolve_agda_version(BuildOptions(agda_version="latest"), PackageInfoCache())

    def test_deprecated_version_warns(self, caplog):
        cache = PackageInfoCache(package_info={"2.6.4.2": "deprecated"})
        with caplog.at_level(logging.WARNING):
            options = resolve_agda_version(BuildOptions(agda_version="2.6.4.2"), cache)
        assert options.agda_version == "2.6.4.2"
        assert "deprecated" in caplog.text

    def test_bundled_cache_resolves_latest(self):
        from agda_bdist.core.data import DataRegistry

        cache = DataRegistry().package_info_cache
        options = resolve_agda_version(BuildOptions(agda_version="latest"), cache)
        assert options.agda_version == "2.6.4.3"

    @pytest.mark.parametrize("agda, expected", [
        ("2.6.4", "71.1"), ("2.6.2", "71.1"), ("2.6.1.3", "67.1"), ("2.5.3", "67.1"), ("2.5.2", None),
    ])
    def test_icu_version_for(self, agda, expected):
        assert icu_version_for(agda) == expected

    def test_resolve_icu_version(self, linux_context):
        options = resolve_icu_version(BuildOptions(agda_version="2.6.4"), linux_context)
        assert options.icu_version == "71.1"

    def test_no_icu_without_cluster_counting(self, linux_context):
        for options in (
            BuildOptions(agda_version="2.6.4", disable_cluster_counting=True),
            BuildOptions(agda_version="2.6.4", enable_stack=True),
            BuildOptions(agda_version="2.6.1"),
        ):
            assert resolve_icu_version(options, linux_context).icu_version is None
