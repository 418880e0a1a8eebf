"""
Integration tests for go-mod-what.
Tests configuration loading and end-to-end lookups on realistic manifests.
"""

import json

from click.testing import CliRunner

from go_mod_what.cli_config import (
    ComprehensiveConfig,
    create_sample_config,
    get_config,
    load_config,
    reset_config,
    validate_config_values,
)
from go_mod_what.main import cli

KUBERNETES_STYLE_GO_MOD = """// This is a generated file. Do not edit directly.

module k8s.io/example

go 1.22.0

godebug default=go1.22

require (
\tgithub.com/google/go-cmp v0.6.0
\tgithub.com/spf13/cobra v1.8.1
\tgithub.com/spf13/pflag v1.0.5
\tk8s.io/api v0.31.0
\tk8s.io/apimachinery v0.31.0
\tk8s.io/klog/v2 v2.130.1
)

require (
\tgithub.com/davecgh/go-spew v1.1.2-0.20180830191138-d8f796af33cc // indirect
\tgithub.com/inconshreveable/mousetrap v1.1.0 // indirect
\tsigs.k8s.io/yaml v1.4.0 // indirect
)

replace (
\tk8s.io/api => ../api
\tk8s.io/apimachinery => ../apimachinery
)
"""


class TestEndToEndLookups:
    """Test complete lookups on a realistic manifest."""

    def test_prefix_query_across_blocks(self, temp_dir):
        """Test that a prefix query spans multiple require blocks in order."""
        (temp_dir / "go.mod").write_text(KUBERNETES_STYLE_GO_MOD)

        runner = CliRunner()
        result = runner.invoke(cli, ["-modfile", str(temp_dir), "k8s.io/*", "sigs.k8s.io/*"])

        assert result.exit_code == 0
        assert result.stdout.splitlines() == [
            "k8s.io/api v0.31.0",
            "k8s.io/apimachinery v0.31.0",
            "k8s.io/klog/v2 v2.130.1",
            "sigs.k8s.io/yaml v1.4.0",
        ]

    def test_pseudo_version_passthrough(self, temp_dir):
        """Test that pseudo-versions are printed exactly as written."""
        (temp_dir / "go.mod").write_text(KUBERNETES_STYLE_GO_MOD)

        runner = CliRunner()
        result = runner.invoke(
            cli, ["-modfile", str(temp_dir), "-only-version", "github.com/davecgh/go-spew"]
        )

        assert result.stdout == "v1.1.2-0.20180830191138-d8f796af33cc\n"

    def test_repeated_runs_are_identical(self, sample_go_mod):
        """Test that two runs over the same manifest produce identical output."""
        args = ["-modfile", str(sample_go_mod), "github.com/*", "example.com/missing"]
        runner = CliRunner()

        first = runner.invoke(cli, args)
        second = runner.invoke(cli, args)

        assert first.stdout == second.stdout
        assert first.stderr == second.stderr
        assert first.exit_code == second.exit_code == 1


class TestConfigurationIntegration:
    """Test configuration files and environment overrides."""

    def test_defaults(self):
        """Test the built-in defaults."""
        config = get_config()

        assert config.query.default_modfile == "./go.mod"
        assert config.query.separator == " "
        assert config.query.fail_on_missing is True
        assert config.logging.log_level == "WARNING"
        assert validate_config_values(config) == []

    def test_toml_config_file(self, tmp_path):
        """Test that .go-mod-what.toml in the working directory is applied."""
        (tmp_path / ".go-mod-what.toml").write_text(
            '[query]\nseparator = "\\t"\nfail_on_missing = false\n'
        )

        config = load_config()

        assert config.query.separator == "\t"
        assert config.query.fail_on_missing is False

    def test_json_config_in_home(self, tmp_path):
        """Test that the JSON config under ~/.config is found."""
        config_dir = tmp_path / "home" / ".config" / "go-mod-what"
        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text(json.dumps({"query": {"output_format": "json"}}))

        assert load_config().query.output_format == "json"

    def test_environment_overrides(self, monkeypatch):
        """Test that environment variables win over defaults."""
        monkeypatch.setenv("GO_MOD_WHAT_SEPARATOR", ",")
        monkeypatch.setenv("GO_MOD_WHAT_FAIL_ON_MISSING", "false")
        monkeypatch.setenv("GO_MOD_WHAT_LOG_LEVEL", "debug")

        config = load_config()

        assert config.query.separator == ","
        assert config.query.fail_on_missing is False
        assert config.logging.log_level == "DEBUG"

    def test_invalid_values_fall_back(self, tmp_path, monkeypatch):
        """Test that invalid settings are replaced by defaults."""
        (tmp_path / ".go-mod-what.toml").write_text(
            '[query]\noutput_format = "yaml"\nseparator = ""\n'
        )
        monkeypatch.setenv("GO_MOD_WHAT_LOG_LEVEL", "chatty")

        config = load_config()

        assert config.query.output_format == "text"
        assert config.query.separator == " "
        assert config.logging.log_level == "WARNING"

    def test_config_is_cached(self):
        """Test that the configuration is loaded once until reset."""
        first = get_config()
        assert get_config() is first

        reset_config()
        assert get_config() is not first

    def test_validate_reports_errors(self):
        """Test validation messages for a hand-built config."""
        config = ComprehensiveConfig()
        config.query.separator = ""

        assert validate_config_values(config) == [
            "query.separator must be a non-empty string"
        ]

    def test_separator_used_by_cli(self, sample_go_mod, monkeypatch):
        """Test that a configured separator changes text output."""
        monkeypatch.setenv("GO_MOD_WHAT_SEPARATOR", "\t")

        runner = CliRunner()
        result = runner.invoke(cli, ["-modfile", str(sample_go_mod), "github.com/gorilla/mux"])

        assert result.stdout == "github.com/gorilla/mux\tv1.8.0\n"

    def test_missing_not_fatal_when_configured(self, sample_go_mod, monkeypatch):
        """Test that fail_on_missing=false keeps a miss from failing the run."""
        monkeypatch.setenv("GO_MOD_WHAT_FAIL_ON_MISSING", "false")

        runner = CliRunner()
        result = runner.invoke(cli, ["-modfile", str(sample_go_mod), "github.com/nonexistent/package"])

        assert result.exit_code == 0
        assert result.stderr == "github.com/nonexistent/package not found\n"

    def test_format_from_config(self, sample_go_mod, monkeypatch):
        """Test that the configured output format applies when -format is omitted."""
        monkeypatch.setenv("GO_MOD_WHAT_FORMAT", "json")

        runner = CliRunner()
        result = runner.invoke(cli, ["-modfile", str(sample_go_mod), "github.com/gorilla/mux"])

        assert json.loads(result.stdout)["matches"][0]["version"] == "v1.8.0"

    def test_sample_config_round_trips(self, tmp_path):
        """Test that the generated sample config loads back as the defaults."""
        sample = create_sample_config()
        assert "[query]" in sample
        assert "[logging]" in sample

        (tmp_path / ".go-mod-what.toml").write_text(sample)

        assert load_config() == ComprehensiveConfig()

    def test_non_table_section_is_ignored(self, tmp_path, sample_go_mod):
        """Test that a config section that is not a table falls back to defaults."""
        (tmp_path / ".go-mod-what.toml").write_text("query = 1\n")

        assert load_config().query == ComprehensiveConfig().query

        reset_config()
        runner = CliRunner()
        result = runner.invoke(cli, ["-modfile", str(sample_go_mod), "github.com/gorilla/mux"])

        assert result.exit_code == 0
        assert result.stdout == "github.com/gorilla/mux v1.8.0\n"
        assert "must be a table" in result.stderr

    def test_non_object_json_config_is_ignored(self, tmp_path):
        """Test that a JSON config whose top level is not an object is skipped."""
        (tmp_path / ".go-mod-what.json").write_text(json.dumps("query"))

        assert load_config() == ComprehensiveConfig()

    def test_output_format_case_insensitive(self, tmp_path):
        """Test that output_format in a config file accepts any case."""
        (tmp_path / ".go-mod-what.toml").write_text('[query]\noutput_format = "JSON"\n')

        assert load_config().query.output_format == "json"
