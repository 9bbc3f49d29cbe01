from pathlib import Path

from click.testing import CliRunner

from noctule import __version__
from noctule.cli import cli


def create_project(tmp_path: Path) -> Path:
    (tmp_path / "source").mkdir()
    (tmp_path / "source" / "index.md").write_text("# Home", encoding="utf-8")
    (tmp_path / "source" / "about.html").write_text("<p>{{ title }}</p>", encoding="utf-8")
    config_path = tmp_path / "noctule.yaml"
    config_path.write_text("title: CLI Site\n", encoding="utf-8")
    return config_path


def test_cli_build(tmp_path):
    config_path = create_project(tmp_path)
    result = CliRunner().invoke(cli, ["build", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert f"Building site from {config_path}" in result.output
    assert f"Built 2 pages into {tmp_path / 'output'}" in result.output
    assert "Done in" in result.output
    assert (tmp_path / "output" / "about.html").read_text(encoding="utf-8") == "<p>CLI Site</p>"


def test_cli_build_dry_run(tmp_path):
    config_path = create_project(tmp_path)
    result = CliRunner().invoke(cli, ["build", "--config", str(config_path), "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "  about.html" in result.output
    assert "  index.html" in result.output
    assert "Would write 2 pages" in result.output
    assert not (tmp_path / "output").exists()


def test_cli_build_reports_failures(tmp_path):
    config_path = create_project(tmp_path)
    (tmp_path / "source" / "bad.md").write_text("---\nlayout: nope\n---\nx", encoding="utf-8")

    result = CliRunner().invoke(cli, ["build", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "1 document(s) failed" in result.output
    assert "File: bad.md" in result.output
    assert "Layout not found: nope" in result.output
    assert (tmp_path / "output" / "index.html").exists()


def test_cli_fail_fast_aborts(tmp_path):
    config_path = create_project(tmp_path)
    (tmp_path / "source" / "bad.md").write_text("---\nlayout: nope\n---\nx", encoding="utf-8")

    result = CliRunner().invoke(cli, ["build", "--config", str(config_path), "--fail-fast"])

    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "bad.md: Layout not found: nope" in result.output
    assert not (tmp_path / "output").exists()


def test_cli_build_missing_source(tmp_path):
    result = CliRunner().invoke(cli, ["build", "--config", str(tmp_path / "noctule.yaml")])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "source directory does not exist" in result.output


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
