"""Tests for argument parsing, YAML configuration and the CLI entry point."""

import argparse
import logging
from unittest.mock import patch

import pytest

import selfupdate
from args import build_parser, parse_args
from cli_config import apply_config, load_config, package_settings, resolve_package_args
from constants import Constants, ExitCodes
from errors import ConfigurationError, PackageNotFoundError, TypeMismatchError
from repository.base import ArrayRepository
from versioning.models import PackageRef


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run from an empty directory with no config or composer.json around."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(Constants.CONFIG_ENV, raising=False)
    monkeypatch.delenv(Constants.COMPOSER_ENV, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in ("REQUEST_TIMEOUT", "HTTP_RETRY_MAX", "DEFAULT_REPOSITORIES"):
        monkeypatch.setattr(Constants, name, getattr(Constants, name))
    return tmp_path


class TestArgs:
    """Argument parsing."""

    def test_positionals(self):
        args = parse_args(["acme/tool", "^2.0@beta"])
        assert args.PACKAGE == "acme/tool"
        assert args.REQUIRE == "^2.0@beta"

    def test_options_win_over_positionals(self):
        args = parse_args(["acme/tool", "^1.0", "-p", "other/pkg", "--require", "~2.1"])
        assert args.PACKAGE == "other/pkg"
        assert args.REQUIRE == "~2.1"

    def test_defaults(self):
        args = parse_args([])
        assert args.PACKAGE is None
        assert args.REQUIRE is None
        assert args.PROJECT_DIR is None
        assert args.LOG_LEVEL == "INFO"
        assert args.NO_FLATTEN is False
        assert args.QUIET is False

    def test_loglevel_case_insensitive(self):
        assert parse_args(["--loglevel", "debug"]).LOG_LEVEL == "DEBUG"

    def test_invalid_loglevel(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--loglevel", "LOUD"])


class TestConfig:
    """YAML configuration."""

    def test_no_config_file(self, isolated):
        assert load_config() == {}

    def test_explicit_missing_file(self, isolated):
        with pytest.raises(ConfigurationError):
            load_config(str(isolated / "nope.yml"))

    def test_loads_and_applies(self, isolated):
        (isolated / "selfupdate.yml").write_text(
            "http:\n  timeout: 5\n  retries: 0\n"
            "repositories:\n  default:\n    - https://mirror.test\n"
            "package:\n  name: acme/tool\n  require: ^2.0\n"
        )
        cfg = load_config()
        apply_config(cfg)
        assert Constants.REQUEST_TIMEOUT == 5
        assert Constants.HTTP_RETRY_MAX == 1
        assert Constants.DEFAULT_REPOSITORIES == ["https://mirror.test"]
        assert package_settings(cfg) == {"name": "acme/tool", "require": "^2.0"}

    def test_env_path(self, isolated, monkeypatch):
        path = isolated / "custom.yaml"
        path.write_text("package:\n  name: acme/env\n")
        monkeypatch.setenv(Constants.CONFIG_ENV, str(path))
        assert package_settings(load_config())["name"] == "acme/env"

    def test_invalid_yaml(self, isolated):
        path = isolated / "bad.yml"
        path.write_text("http: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_non_mapping(self, isolated):
        path = isolated / "list.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    @pytest.mark.parametrize(
        "cfg",
        [
            {"http": "fast"},
            {"http": {"timeout": "soon"}},
            {"repositories": {"default": "https://one.test"}},
            {"repositories": {"default": [1, 2]}},
        ],
    )
    def test_bad_values(self, isolated, cfg):
        with pytest.raises(ConfigurationError):
            apply_config(cfg)

    def test_resolve_package_args_keeps_cli(self):
        args = argparse.Namespace(PACKAGE="cli/pkg", REQUIRE=None)
        resolve_package_args(args, {"package": {"name": "yaml/pkg", "require": "^1.0"}})
        assert args.PACKAGE == "cli/pkg"
        assert args.REQUIRE == "^1.0"


class TestEntryPoint:
    """selfupdate.run / selfupdate.main."""

    def test_success(self, isolated):
        with patch("selfupdate.UpdateOrchestrator") as orch_cls:
            orch_cls.return_value.run.return_value = ExitCodes.SUCCESS
            code = selfupdate.run(parse_args(["acme/tool", "^1.0", "-d", str(isolated)]))
        assert code == 0
        orch_cls.return_value.run.assert_called_once_with("acme/tool", "^1.0", str(isolated))
        assert orch_cls.call_args.kwargs["project"] is None

    def test_project_loaded_from_directory(self, isolated):
        (isolated / "composer.json").write_text('{"name": "acme/app"}')
        with patch("selfupdate.UpdateOrchestrator") as orch_cls:
            orch_cls.return_value.run.return_value = ExitCodes.SUCCESS
            selfupdate.run(parse_args(["-d", str(isolated)]))
        assert orch_cls.call_args.kwargs["project"].name == "acme/app"

    def test_yaml_package_used(self, isolated):
        (isolated / "selfupdate.yml").write_text("package:\n  name: acme/yaml\n")
        with patch("selfupdate.UpdateOrchestrator") as orch_cls:
            orch_cls.return_value.run.return_value = ExitCodes.SUCCESS
            selfupdate.run(parse_args(["-d", str(isolated)]))
        assert orch_cls.return_value.run.call_args.args[0] == "acme/yaml"

    def test_not_found_exit_code(self, isolated, caplog):
        with patch("selfupdate.UpdateOrchestrator") as orch_cls:
            orch_cls.return_value.run.side_effect = PackageNotFoundError("acme/tool")
            code = selfupdate.run(parse_args(["acme/tool"]))
        assert code == ExitCodes.NOT_FOUND.value
        assert "Could not find a package matching acme/tool." in caplog.text

    def test_type_mismatch_exit_code(self, isolated):
        with patch("selfupdate.UpdateOrchestrator") as orch_cls:
            orch_cls.return_value.run.side_effect = TypeMismatchError("bad repository value")
            assert selfupdate.run(parse_args(["acme/tool"])) == ExitCodes.INTERNAL_ERROR.value

    def test_project_dir_is_a_file(self, isolated):
        blocker = isolated / "blocker"
        blocker.write_text("not a directory")
        tool = PackageRef.from_composer({
            "name": "acme/tool",
            "version": "1.0.0",
            "dist": {"type": "zip", "url": "https://dl.test/acme-tool.zip"},
        })
        with patch("repository.factory.default_repositories", return_value=[ArrayRepository([tool])]):
            with patch("archive.fetcher.download") as mock_dl:
                code = selfupdate.run(parse_args(["acme/tool", "1.0.0", "-d", str(blocker)]))
        assert code == ExitCodes.CONNECTION_ERROR.value
        mock_dl.assert_not_called()

    def test_config_error_exit_code(self, isolated):
        code = selfupdate.run(parse_args(["acme/tool", "-c", str(isolated / "missing.yml")]))
        assert code == ExitCodes.CONFIG_ERROR.value

    def test_main_exits_with_code(self, isolated):
        with patch("selfupdate.setup_logging"), patch("selfupdate.run", return_value=5):
            with pytest.raises(SystemExit) as excinfo:
                selfupdate.main(["acme/tool"])
        assert excinfo.value.code == 5

    def test_setup_logging_quiet(self, isolated, monkeypatch):
        monkeypatch.setenv(Constants.LOG_LEVEL_ENV, "INFO")
        root = logging.getLogger()
        previous = root.level
        try:
            selfupdate.setup_logging(parse_args(["-q", "--loglevel", "DEBUG"]))
            assert root.level == logging.ERROR
        finally:
            root.setLevel(previous)
