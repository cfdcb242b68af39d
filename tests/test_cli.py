# tests/test_cli.py
import json

from typer.testing import CliRunner


def _names_from_list_json(cli_app):
    r = CliRunner().invoke(cli_app, ["list", "--json"])
    assert r.exit_code == 0
    data = json.loads(r.output or "{}")
    return {item["name"]: item for item in data.get("skills", [])}


def test_cli_help(cli_app):
    r = CliRunner().invoke(cli_app, ["--help"])
    assert r.exit_code == 0
    assert "Usage" in r.output
    for cmd in ("install", "run", "schedule", "trigger", "tier"):
        assert cmd in r.output


def test_list_empty(cli_app):
    r = CliRunner().invoke(cli_app, ["list"])
    assert r.exit_code == 0
    assert "No skills installed." in r.output


def test_skill_crud_flow(cli_app, skill_factory, tmp_path):
    runner = CliRunner()
    src = skill_factory("echo", root=tmp_path / "catalog")

    r = runner.invoke(cli_app, ["install", str(src)])
    assert r.exit_code == 0, r.output
    assert "Installed echo" in r.output

    skills = _names_from_list_json(cli_app)
    assert skills["echo"]["version"] == "0.0.1"
    assert skills["echo"]["origin"] == "curated"

    r = runner.invoke(cli_app, ["run", "echo", "--input", '{"city": "sf"}'])
    assert r.exit_code == 0, r.output
    assert json.loads(r.output) == {"echo": {"city": "sf"}}

    r = runner.invoke(cli_app, ["install", str(src)])
    assert "already installed" in r.output

    r = runner.invoke(cli_app, ["remove", "echo"])
    assert r.exit_code == 0
    assert "echo" not in _names_from_list_json(cli_app)


def test_run_errors(cli_app):
    runner = CliRunner()
    r = runner.invoke(cli_app, ["run", "ghost"])
    assert r.exit_code == 1
    assert "not installed" in r.output

    r = runner.invoke(cli_app, ["run", "ghost", "--input", "[1, 2]"])
    assert r.exit_code == 2


def test_install_without_backend_fails(cli_app):
    r = CliRunner().invoke(cli_app, ["install", "skills:weather"])
    assert r.exit_code == 1
    assert "no installer" in r.output


def test_agent_commands(cli_app):
    runner = CliRunner()
    assert runner.invoke(cli_app, ["rename", "Jarvis"]).exit_code == 0
    assert runner.invoke(cli_app, ["tier", "cloud"]).exit_code == 0
    assert runner.invoke(cli_app, ["tier", "gold"]).exit_code == 2

    r = runner.invoke(cli_app, ["whoami"])
    assert r.output.strip() == "Jarvis (cloud) v0.1.0"

    r = runner.invoke(cli_app, ["status"])
    assert r.exit_code == 0
    assert "cloud" in r.output


def test_schedule_on_free_tier(cli_app, skill_factory, tmp_path):
    runner = CliRunner()
    src = skill_factory("digest", root=tmp_path / "catalog")
    assert runner.invoke(cli_app, ["install", str(src)]).exit_code == 0

    r = runner.invoke(cli_app, ["schedule", "digest", "0 9 * * *"])
    assert r.exit_code == 1
    assert _names_from_list_json(cli_app)["digest"]["status"] == "locked"


def test_start_without_background_skills(cli_app):
    r = CliRunner().invoke(cli_app, ["start"])
    assert r.exit_code == 0, r.output
    assert "No background skills are active." in r.output
