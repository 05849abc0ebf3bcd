"""Tests for the tagweave command line."""

import pytest
import yaml
from typer.testing import CliRunner

from tagweave import __version__
from tagweave.cli import typer_app

runner = CliRunner()


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A template root with a settings file, used as the working directory."""
    (tmp_path / "tagweave.yaml").write_text("root: .\n")
    views = tmp_path / "app" / "views"
    (views / "shared").mkdir(parents=True)
    (views / "home").mkdir()
    (views / "shared" / "ui.weave").write_text(
        '<def tag="btn" attrs="label"><button><%= label %></button></def>'
    )
    (views / "home" / "index.weave").write_text(
        '<taglib src="shared/ui"/>\n<h1><%= this.title %></h1><btn label="#label"/>'
        '<div part_id="count"><%= this.count %></div>'
    )
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_version():
    result = runner.invoke(typer_app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_compile_prints_host_source(project):
    result = runner.invoke(typer_app, ["compile", "app/views/home/index.weave"])

    assert result.exit_code == 0, result.output
    assert '<%= btn({"label": (label)}) %>' in result.output
    assert 'call_part("count", "count")' in result.output


def test_compile_to_file(project):
    out = project / "build" / "index.jinja"
    result = runner.invoke(typer_app, ["compile", "app/views/home/index.weave", "-o", str(out)])

    assert result.exit_code == 0, result.output
    assert out.read_text().startswith("\n<h1>")


def test_render_with_data(project):
    data = project / "data.yaml"
    data.write_text(yaml.safe_dump({"this": {"title": "Home", "count": 2}, "label": "Go"}))

    result = runner.invoke(typer_app, ["render", "app/views/home/index.weave", "-d", str(data)])

    assert result.exit_code == 0, result.output
    assert '<h1>Home</h1><button>Go</button><div id="count">2</div>' in result.output


def test_render_single_part(project):
    data = project / "data.yaml"
    data.write_text(yaml.safe_dump({"this": {"count": 7}}))

    result = runner.invoke(
        typer_app, ["render", "app/views/home/index.weave", "-d", str(data), "--part", "count"]
    )

    assert result.exit_code == 0, result.output
    assert result.output == "7"


def test_tags_lists_registry(project):
    result = runner.invoke(typer_app, ["tags", "app/views/home/index.weave"])

    assert result.exit_code == 0, result.output
    assert "btn" in result.output
    assert "label" in result.output


def test_compile_error_exits_nonzero(project):
    bad = project / "app" / "views" / "home" / "bad.weave"
    bad.write_text("<p>\n<tagbody/></p>")

    result = runner.invoke(typer_app, ["compile", str(bad)])

    assert result.exit_code == 1
    assert "can only appear inside a <def>" in result.output
