"""Tests for CLI interface."""

import json

import pytest

from moxie.cli import load_target, parse_args, run_cli
from moxie.config import LOG_LEVEL_ENV, STRICT_ENV
from sample_components import Client


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(STRICT_ENV, raising=False)
    monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)


class TestCLI:
    def given_args(self, *args):
        self.args = list(args)

    def when_cli_is_run(self, capsys):
        self.exit_code = run_cli(self.args)
        self.captured = capsys.readouterr()

    def then_exit_code_is(self, code):
        assert self.exit_code == code

    def then_stdout_is_client_json(self):
        output = json.loads(self.captured.out)
        assert output["component"] == "Client"
        assert [m["name"] for m in output["methods"]] == ["delete", "list"]
        assert output["ambiguous"] == ["get"]

    def then_stderr_has_error(self, text=""):
        assert "Error:" in self.captured.err
        assert text in self.captured.err

    def test_resolve_outputs_json(self, capsys):
        """resolve prints the method set as JSON."""
        self.given_args("resolve", "sample_components:Client")
        self.when_cli_is_run(capsys)
        self.then_exit_code_is(0)
        self.then_stdout_is_client_json()

    def test_bare_target_means_resolve(self, capsys):
        """A target without a command is resolved."""
        self.given_args("sample_components:Client")
        self.when_cli_is_run(capsys)
        self.then_exit_code_is(0)
        self.then_stdout_is_client_json()

    def test_strict_fails_on_ambiguity(self, capsys):
        """--strict turns dropped names into an error."""
        self.given_args("resolve", "sample_components:Client", "--strict")
        self.when_cli_is_run(capsys)
        self.then_exit_code_is(1)
        self.then_stderr_has_error("ambiguous methods in Client: get")

    def test_strict_from_environment(self, capsys, monkeypatch):
        """MOXIE_STRICT applies when the flag is absent."""
        monkeypatch.setenv(STRICT_ENV, "1")
        self.given_args("sample_components:Client")
        self.when_cli_is_run(capsys)
        self.then_exit_code_is(1)

    def test_surface_to_stdout(self, capsys):
        """surface writes the stub to stdout by default."""
        self.given_args("surface", "sample_components:Bucket")
        self.when_cli_is_run(capsys)
        self.then_exit_code_is(0)
        assert self.captured.out.startswith(
            "# Code generated by moxie from sample_components:Bucket."
        )
        assert "def _tag_calls(self) -> list[TagCall]: ..." in self.captured.out

    def test_surface_to_file(self, capsys, tmp_path):
        """-o writes the stub to a file and reports it."""
        output = tmp_path / "bucket_surface.pyi"
        self.given_args("surface", "sample_components:Bucket", "-o", str(output))
        self.when_cli_is_run(capsys)
        self.then_exit_code_is(0)
        assert "class Bucket:" in output.read_text()
        assert "Wrote 4 proxied methods of Bucket to:" in self.captured.err

    def test_cycle_writes_no_file(self, capsys, tmp_path):
        """A cyclic component fails and leaves no output behind."""
        output = tmp_path / "loop.pyi"
        self.given_args("surface", "sample_components:Loop", "-o", str(output))
        self.when_cli_is_run(capsys)
        self.then_exit_code_is(1)
        self.then_stderr_has_error("cyclic composition: Loop -> Loop")
        assert not output.exists()

    @pytest.mark.parametrize(
        "target",
        [
            "sample_components",
            "no_such_module:Thing",
            "sample_components:Missing",
            "json:dumps",
        ],
    )
    def test_bad_targets(self, capsys, target):
        """Targets that cannot be loaded exit with 1."""
        self.given_args("resolve", target)
        self.when_cli_is_run(capsys)
        self.then_exit_code_is(1)
        self.then_stderr_has_error()

    def test_no_args_prints_usage(self, capsys):
        """No command is a usage error."""
        self.given_args()
        self.when_cli_is_run(capsys)
        self.then_exit_code_is(2)
        assert "usage" in self.captured.err.lower()

    def test_unknown_option(self, capsys):
        """argparse errors exit with 2."""
        self.given_args("resolve", "sample_components:Client", "--bogus")
        self.when_cli_is_run(capsys)
        self.then_exit_code_is(2)

    def test_help(self, capsys):
        """--help exits cleanly."""
        self.given_args("--help")
        self.when_cli_is_run(capsys)
        self.then_exit_code_is(0)
        assert "resolve" in self.captured.out

    def test_invalid_log_level(self, capsys, monkeypatch):
        """Bad configuration is a usage error."""
        monkeypatch.setenv(LOG_LEVEL_ENV, "loud")
        self.given_args("sample_components:Client")
        self.when_cli_is_run(capsys)
        self.then_exit_code_is(2)
        self.then_stderr_has_error("MOXIE_LOG_LEVEL")


class TestParseArgs:
    """Tests for parse_args function."""

    def test_inserts_resolve(self):
        """Bare targets are parsed as resolve."""
        parsed = parse_args(["pkg:Thing", "--strict"])

        assert parsed.command == "resolve"
        assert parsed.target == "pkg:Thing"
        assert parsed.strict

    def test_surface_options(self):
        """surface takes an output path."""
        parsed = parse_args(["surface", "pkg:Thing", "--output", "out.pyi"])

        assert parsed.output == "out.pyi"
        assert not parsed.strict


class TestLoadTarget:
    """Tests for load_target function."""

    def test_loads_class(self):
        """module:Class resolves to the class object."""
        assert load_target("sample_components:Client") is Client

    def test_rejects_missing_colon(self):
        """Targets need a module and a class."""
        with pytest.raises(ValueError, match="expected module:Class"):
            load_target("sample_components.Client")

    def test_rejects_non_class(self):
        """Functions are not components."""
        with pytest.raises(ValueError, match="not a class"):
            load_target("json:dumps")
