# File: tests/test_cli.py
"""Тесты для CLI (`font_spider/cli.py`) с использованием click.testing.CliRunner.
Проверяют команды `run`, `config`, `--version`, а также обработку ошибок.
"""
import json

import pytest
import font_spider.cli as cli_module
from click.testing import CliRunner
from font_spider.cli import cli
from font_spider.engine import start_spider as real_start_spider
from font_spider.errors import DocumentError, ResourceError
from font_spider.models import FontFileRef, FontFormat, WebFontUsage


@pytest.fixture(autouse=True)
def patch_start_spider(monkeypatch):
    """Патчим start_spider: возвращает один шрифт и запоминает полученный конфиг."""
    calls = []

    async def fake_spider(sources, cfg):
        calls.append((sources, cfg))
        usage = WebFontUsage(
            identity="abc123",
            family="Demo",
            files=[FontFileRef("/site/fonts/demo.woff2", FontFormat.WOFF2)],
            selectors=[".title"],
        )
        usage.add_chars("Привет")
        usage.finalize(unique=cfg.unique, sort=cfg.sort)
        return [usage]

    monkeypatch.setattr(cli_module, "start_spider", fake_spider)
    return calls


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "FontSpider" in result.output


def test_show_config(tmp_path, monkeypatch):
    cfg_file = tmp_path / "spider.json"
    cfg_file.write_text(
        json.dumps({"maxImportFiles": 3, "ignore": ["*.eot"], "backup": True}),
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)

    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["max_import_files"] == 3
    assert data["ignore"] == ["*.eot"]
    assert "backup" not in data


def test_run_stdout(tmp_path, monkeypatch, patch_start_spider):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli, ["run", "index.html", "about.html"])
    assert result.exit_code == 0
    output = json.loads(result.output)
    assert output[0]["family"] == "Demo"
    assert output[0]["chars"] == "Пвеирт"
    assert output[0]["files"] == [{"url": "/site/fonts/demo.woff2", "format": "woff2"}]
    assert patch_start_spider[0][0] == ["index.html", "about.html"]


def test_run_options_override_config(tmp_path, monkeypatch, patch_start_spider):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "font-spider.yaml").write_text("ignore: ['*.eot']\nsort: true\n", encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "run", "index.html",
            "--ignore", "*.svg",
            "--map", "^/static", "./dist",
            "--no-sort", "--no-unique",
        ],
    )
    assert result.exit_code == 0
    cfg = patch_start_spider[0][1]
    assert cfg.ignore == ["*.eot", "*.svg"]
    assert cfg.map == [("^/static", "./dist")]
    assert cfg.sort is False and cfg.unique is False
    assert json.loads(result.output)[0]["chars"] == "Привет"


def test_run_json_file(tmp_path):
    out = tmp_path / "reports" / "fonts.json"
    runner = CliRunner()
    result = runner.invoke(cli, ["run", "index.html", "--json", str(out)])
    assert result.exit_code == 0
    assert "JSON report" in result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data[0]["selectors"] == [".title"]


def test_run_requires_files():
    runner = CliRunner()
    result = runner.invoke(cli, ["run"])
    assert result.exit_code != 0


def test_run_failure(monkeypatch):
    async def failing(sources, cfg):
        error = DocumentError("/site/index.html")
        error.__cause__ = ResourceError("/site/index.html", "No such file or directory")
        raise error

    monkeypatch.setattr(cli_module, "start_spider", failing)

    runner = CliRunner()
    result = runner.invoke(cli, ["run", "index.html"])
    assert result.exit_code == 1
    assert 'spider "/site/index.html" failed: load "/site/index.html" failed' in result.output


def test_bad_config(tmp_path):
    cfg_file = tmp_path / "spider.yaml"
    cfg_file.write_text("maxImportFiles: 0\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Ошибка загрузки конфигурации" in result.output


def test_run_stdout_stays_json_with_warnings(site, monkeypatch):
    monkeypatch.setattr(cli_module, "start_spider", real_start_spider)
    root = site(
        {
            "fonts.css": '@font-face{font-family:"F";src:url(f.ttf)}\n.t{font-family:F}',
            "index.html": (
                '<link rel="stylesheet" href="gone.css">'
                '<link rel="stylesheet" href="fonts.css">'
                '<p class="t">Hi</p>'
            ),
        }
    )

    runner = CliRunner()
    result = runner.invoke(cli, ["run", str(root / "index.html")])

    assert result.exit_code == 0
    assert json.loads(result.stdout)[0]["chars"] == "Hi"
    assert "Skipped stylesheet" in result.stderr
