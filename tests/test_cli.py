"""Tests for the flexpublish CLI."""

import json
import textwrap
from pathlib import Path

import pytest

from flexpublish.cli import Kinds, RunBuild, Show, main
from flexpublish.config import clear_config_instance, get_config


@pytest.fixture(autouse=True)
def cleanup():
    """Reset the global config between tests."""
    yield
    clear_config_instance()


def write_config(config_dir: Path, body: str) -> None:
    (config_dir / "flexpublish.yaml").write_text(textwrap.dedent(body))


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "config"
    directory.mkdir()
    write_config(
        directory,
        """
        flexpublish:
          project:
            name: webapp
          publishers:
            - condition: always
              publisher:
                kind: shell
                params:
                  command: echo published
            - condition:
                kind: status
                params: {worst: SUCCESS, best: SUCCESS}
              publisher:
                kind: shell
                params:
                  command: echo deployed
        """,
    )
    return directory


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    directory = tmp_path / "workspace"
    directory.mkdir()
    return directory


class TestRun:
    def test_successful_build(self, config_dir: Path, workspace: Path, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(RunBuild(workspace=workspace), config_dir=config_dir)

        assert exc_info.value.code == 0
        lines = capsys.readouterr().out.splitlines()
        assert "Condition [Always] is met. Continue to run perform step of [Execute shell]" in lines
        assert "published" in lines
        assert "deployed" in lines
        assert lines[-1] == "Finished: SUCCESS"

    def test_unstable_build_skips_deploy(self, config_dir: Path, workspace: Path, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(RunBuild(result="unstable", workspace=workspace), config_dir=config_dir)

        assert exc_info.value.code == 1
        lines = capsys.readouterr().out.splitlines()
        assert "Condition [Current build status] is not met, continue to next perform step" in lines
        assert "deployed" not in lines
        assert lines[-1] == "Finished: UNSTABLE"

    def test_failing_command_stops_sequence(self, config_dir: Path, workspace: Path, capsys) -> None:
        write_config(
            config_dir,
            """
            flexpublish:
              publishers:
                - publisher: {kind: shell, params: {command: "exit 2"}}
                - publisher: {kind: shell, params: {command: "echo unreachable"}}
            """,
        )

        with pytest.raises(SystemExit) as exc_info:
            main(RunBuild(workspace=workspace), config_dir=config_dir)

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "unreachable" not in out
        assert out.splitlines()[-1] == "Finished: FAILURE"

    def test_io_error_fails_build(self, config_dir: Path, tmp_path: Path, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(RunBuild(workspace=tmp_path / "missing"), config_dir=config_dir)

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "ERROR: Publisher failed" in out
        assert out.splitlines()[-1] == "Finished: FAILURE"

    def test_unknown_result(self, config_dir: Path, workspace: Path, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(RunBuild(result="green", workspace=workspace), config_dir=config_dir)

        assert exc_info.value.code == 1
        assert "Unknown build result" in capsys.readouterr().err

    def test_matrix_project_rejected(self, config_dir: Path, workspace: Path, capsys) -> None:
        write_config(config_dir, "flexpublish:\n  project: {name: grid, kind: matrix}\n")

        with pytest.raises(SystemExit) as exc_info:
            main(RunBuild(workspace=workspace), config_dir=config_dir)

        assert exc_info.value.code == 1
        assert "not available" in capsys.readouterr().err

    def test_invalid_yaml(self, config_dir: Path, workspace: Path, capsys) -> None:
        write_config(config_dir, "flexpublish: [oops\n")

        with pytest.raises(SystemExit) as exc_info:
            main(RunBuild(workspace=workspace), config_dir=config_dir)

        assert exc_info.value.code == 1
        assert "Invalid YAML" in capsys.readouterr().err


class TestKinds:
    def test_lists_conditions_and_allowed_publishers(self, config_dir: Path, capsys) -> None:
        main(Kinds(), config_dir=config_dir)

        out = capsys.readouterr().out
        assert "Run Conditions" in out
        assert "file-exists" in out
        assert "set-result" in out
        assert "flexible-publish" not in out


class TestShow:
    def test_json_output(self, config_dir: Path, capsys) -> None:
        main(Show(json=True), config_dir=config_dir)

        data = json.loads(capsys.readouterr().out)
        assert data["project"] == {"name": "webapp", "kind": "freestyle"}
        assert data["publishers"] == [
            {"index": 1, "condition": "Always", "publisher": "Execute shell"},
            {"index": 2, "condition": "Current build status", "publisher": "Execute shell"},
        ]

    def test_table_output(self, config_dir: Path, capsys) -> None:
        main(Show(), config_dir=config_dir)

        out = capsys.readouterr().out
        assert "webapp" in out
        assert "Execute shell" in out

    def test_no_publishers(self, tmp_path: Path, capsys) -> None:
        main(Show(), config_dir=tmp_path)

        assert "No publishers configured" in capsys.readouterr().out

    def test_config_dir_from_environment(self, tmp_path: Path, monkeypatch, capsys) -> None:
        write_config(tmp_path, "flexpublish:\n  project: {name: from-env}\n")
        monkeypatch.setenv("FLEXPUBLISH_CONFIG_DIR", str(tmp_path))

        main(Show(json=True))

        data = json.loads(capsys.readouterr().out)
        assert data["project"]["name"] == "from-env"
        assert get_config().config_path == tmp_path / "flexpublish.yaml"

    def test_explicit_config_dir_wins(self, config_dir: Path, tmp_path: Path, monkeypatch, capsys) -> None:
        other = tmp_path / "other"
        other.mkdir()
        write_config(other, "flexpublish:\n  project: {name: from-env}\n")
        monkeypatch.setenv("FLEXPUBLISH_CONFIG_DIR", str(other))

        main(Show(json=True), config_dir=config_dir)

        assert json.loads(capsys.readouterr().out)["project"]["name"] == "webapp"
