import json

from typer.testing import CliRunner

from opsmap import config
from opsmap.cli import app

from conftest import SAMPLE_DATA

runner = CliRunner()


def _content_dir(tmp_path, skip=()):
    endpoints = {
        "departments": config.DEPARTMENTS_ENDPOINT,
        "communes": config.COMMUNES_ENDPOINT,
        "sections": config.SECTIONS_ENDPOINT,
    }
    for layer, data in SAMPLE_DATA.items():
        if layer.value in skip:
            continue
        path = tmp_path / endpoints[layer.value].lstrip("/")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
    return tmp_path


def test_styles_lists_keys():
    result = runner.invoke(app, ["styles", "--base-url", "https://content.example"])

    assert result.exit_code == 0
    assert "terrain" in result.stdout
    assert "carto-dark.json" in result.stdout


def test_layers_lists_catalog():
    result = runner.invoke(app, ["layers"])

    assert result.exit_code == 0
    assert "communes-outline" in result.stdout
    assert "sections-fill" in result.stdout


def test_compose_prints_stack(tmp_path):
    content = _content_dir(tmp_path)

    result = runner.invoke(app, ["compose", "--base-url", str(content)])

    assert result.exit_code == 0, result.stdout
    assert "departments-outline" in result.stdout
    assert "none" in result.stdout


def test_compose_reports_skipped_layer(tmp_path):
    content = _content_dir(tmp_path, skip={"communes"})

    result = runner.invoke(app, ["compose", "--base-url", str(content), "--style", "dark"])

    assert result.exit_code == 0, result.stdout
    assert "Skipped communes" in result.stdout
    assert "sections-outline" in result.stdout


def test_compose_unknown_style_fails(tmp_path):
    result = runner.invoke(app, ["compose", "--base-url", str(tmp_path), "--style", "satellite"])

    assert result.exit_code == 1


def test_compose_invalid_settings_fails(tmp_path):
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"zoom": "far"}), encoding="utf-8")

    result = runner.invoke(app, ["compose", "--settings", str(settings)])

    assert result.exit_code == 1


def test_probe_resolves_section(tmp_path):
    content = _content_dir(tmp_path)

    result = runner.invoke(app, ["probe", "--base-url", str(content), "--", "-72.35", "18.6"])

    assert result.exit_code == 0, result.stdout
    assert "Turgeau" in result.stdout


def test_probe_outside_any_feature(tmp_path):
    content = _content_dir(tmp_path)

    result = runner.invoke(app, ["probe", "--base-url", str(content), "--", "-60", "10"])

    assert result.exit_code == 0
    assert "No feature" in result.stdout
