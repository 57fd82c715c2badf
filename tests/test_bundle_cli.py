"""Tests for the bundle.py command line."""

import json
import os
from unittest.mock import patch

import pytest

import bundle
from scud.config import Config
from scud.errors import CompilerError
from scud.hasher import compute_fingerprint
from scud.models import Strategy


@pytest.fixture
def source(tmp_path):
    root = tmp_path / "api"
    (root / "cmd" / "users").mkdir(parents=True)
    (root / "go.mod").write_text("module example.com/api\n")
    (root / "cmd" / "users" / "main.go").write_text("package main\n")
    return root


@pytest.fixture
def config(tmp_path):
    config = Config(build_root=str(tmp_path))
    with patch("bundle.Config.from_environ", return_value=config):
        yield config


class TestArguments:

    def test_defaults(self):
        args = bundle.parse_arguments(["src"])
        assert args.entry == "."
        assert args.app_version is None
        assert not args.plan and not args.build and not args.test_aws

    def test_unknown_strategy(self):
        with pytest.raises(SystemExit):
            bundle.parse_arguments(["src", "--build", "--strategy", "podman"])

    def test_default_output_dir(self):
        assert bundle.default_output_dir("/src/api", "cmd/users") == os.path.join(".build", "users")
        assert bundle.default_output_dir("/src/api/", ".") == os.path.join(".build", "api")


@pytest.mark.usefixtures("config")
class TestMain:

    def test_fingerprint(self, source, capsys):
        assert bundle.main([str(source), "--entry", "cmd/users"]) == 0
        expected = compute_fingerprint(source, header="package: cmd/users")
        assert f"Fingerprint: {expected}" in capsys.readouterr().out

    def test_plan(self, source, capsys):
        assert bundle.main([str(source), "--entry", "cmd/users", "--plan", "--version", "v1.0.0"]) == 0
        out = capsys.readouterr().out
        plan = json.loads(out[out.index("{"):])
        assert plan["source_code"] == str(source / "cmd" / "users")
        assert plan["working_directory"] == "/go/api/cmd/users"
        assert plan["ldflags"] == ["-X main.version=v1.0.0"]

    def test_build(self, source, tmp_path, capsys):
        artifact = tmp_path / "out" / "main"
        artifact.parent.mkdir()
        artifact.write_bytes(b"\x7fELF")

        with patch("bundle.Bundler") as bundler:
            bundler.return_value.bundle.return_value = str(artifact)
            code = bundle.main([str(source), "--entry", "cmd/users", "--build",
                                "--strategy", "container", "--output", str(tmp_path / "out")])

        assert code == 0
        spec, output_dir, strategy = bundler.return_value.bundle.call_args[0]
        assert spec.source_code == str(source / "cmd" / "users")
        assert output_dir == str(tmp_path / "out")
        assert strategy is Strategy.CONTAINER
        assert f"Artifact: {artifact}" in capsys.readouterr().out

    def test_build_failure(self, source, capsys):
        with patch("bundle.Bundler") as bundler:
            bundler.return_value.bundle.side_effect = CompilerError("go build failed", returncode=1,
                                                                    stderr="syntax error")
            assert bundle.main([str(source), "--entry", "cmd/users", "--build"]) == 1
        assert "syntax error" in capsys.readouterr().out

    def test_missing_entry_point(self, source, capsys):
        assert bundle.main([str(source), "--entry", "cmd/orders"]) == 1
        assert "❌" in capsys.readouterr().out

    def test_aws_credentials(self, source):
        with patch("scud.aws_utils.AWSManager") as manager:
            manager.return_value.check_aws_credentials.return_value = False
            assert bundle.main([str(source), "--test-aws"]) == 1

            manager.return_value.check_aws_credentials.return_value = True
            assert bundle.main([str(source), "--test-aws"]) == 0


class TestEnvironment:
    """Settings read from the real process environment."""

    def test_invalid_strategy_is_reported(self, source, monkeypatch, capsys):
        monkeypatch.setenv("SCUD_BUILD_STRATEGY", "podman")
        assert bundle.main([str(source)]) == 1
        out = capsys.readouterr().out
        assert "❌" in out
        assert "SCUD_BUILD_STRATEGY" in out

    def test_environment_strategy_used_for_build(self, source, tmp_path, monkeypatch):
        monkeypatch.setenv("SCUD_BUILD_STRATEGY", "container")
        artifact = tmp_path / "main"
        artifact.write_bytes(b"\x7fELF")

        with patch("bundle.Bundler") as bundler:
            bundler.return_value.bundle.return_value = str(artifact)
            assert bundle.main([str(source), "--build", "--output", str(tmp_path)]) == 0

        config = bundler.call_args[0][0]
        assert config.strategy is Strategy.CONTAINER
