"""End-to-end tests driving the optimize-assets command."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

from lxml import etree
from PIL import Image
from typer.testing import CliRunner

import asset_optimizer
from asset_optimizer.cli import cli as cli_module

runner = CliRunner()

LOGO_SVG = """<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg"
     xmlns:xlink="http://www.w3.org/1999/xlink"
     xmlns:sodipodi="http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd"
     viewBox="0 0 120 40" width="120" height="40">
  <!-- exported from the design tool -->
  <sodipodi:namedview id="namedview1" pagecolor="#ffffff"/>
  <g id="layerOne">
    <rect x="0" y="0" width="120" height="40" rx="6" fill="#1e3a8a"/>
    <circle cx="20" cy="20" r="12" fill="#ffffff"/>
    <path d="M44 12h60v4H44zm0 12h40v4H44z" fill="#ffffff"/>
  </g>
</svg>
"""

STYLE_CSS = """/* main layout */
.header {
  display: flex;
  align-items: center;
  justify-content: space-between;
}
"""

APP_JS = """(function () {
  var greeting = 'hello';
  debugger;
  console.log(greeting);
})();
"""

INDEX_HTML = "<!doctype html>\n<html><head><title>Site</title></head><body></body></html>\n"


def _events(output: str) -> list[dict[str, object]]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


def _build_site(root: Path) -> None:
    root.mkdir()
    (root / "logo.svg").write_text(LOGO_SVG, encoding="utf-8")
    Image.new("RGB", (3000, 2000), (200, 120, 40)).save(root / "hero.jpg", "JPEG", quality=95)
    (root / "style.css").write_text(STYLE_CSS, encoding="utf-8")
    (root / "app.js").write_text(APP_JS, encoding="utf-8")
    (root / "index.html").write_text(INDEX_HTML, encoding="utf-8")


def test_package_import_smoke() -> None:
    """Ensure the package exposes a version."""
    assert asset_optimizer.__version__


def test_five_file_site_builds_cleanly(tmp_path: Path) -> None:
    """Ensure the reference site optimizes with exit code 0 and no errors."""
    source = tmp_path / "site"
    _build_site(source)
    output = source / "dist"

    result = runner.invoke(cli_module.app, ["--source", str(source), "--js-engine", "rjsmin"])

    assert result.exit_code == 0, result.output
    logo = (output / "logo.svg").read_bytes()
    assert len(logo) < len(LOGO_SVG.encode("utf-8"))
    assert b"xmlns:xlink" not in logo
    assert b"sodipodi" not in logo
    assert etree.fromstring(logo).get("viewBox") == "0 0 120 40"

    for name in ("hero.webp", "hero.jpg"):
        with Image.open(output / name) as image:
            assert image.width <= 1920
            assert image.size == (1920, 1280)

    css = (output / "style.css").read_text(encoding="utf-8")
    assert "/*" not in css
    assert "display:-webkit-flex" in css
    assert "-webkit-align-items:center" in css

    script = (output / "app.js").read_text(encoding="utf-8")
    assert "debugger" not in script
    assert "console.log(" in script
    assert script.endswith("//# sourceMappingURL=app.js.map")
    assert json.loads((output / "app.js.map").read_text(encoding="utf-8"))["version"] == 3

    assert (output / "index.html").read_bytes() == INDEX_HTML.encode("utf-8")

    events = _events(result.output)
    completed = [e for e in events if e["message"] == "Asset optimization completed"][0]
    assert completed["errors"] == 0
    assert completed["images"]["count"] == 2
    assert not any(e["level"] == "ERROR" for e in events)


def test_unsupported_image_is_a_warning_only(tmp_path: Path) -> None:
    """Ensure a .bmp produces a warning, no outputs and exit code 0."""
    source = tmp_path / "site"
    source.mkdir()
    Image.new("RGB", (16, 16)).save(source / "old.bmp", "BMP")
    (source / "index.html").write_text(INDEX_HTML, encoding="utf-8")

    result = runner.invoke(cli_module.app, ["--source", str(source)])

    assert result.exit_code == 0, result.output
    events = _events(result.output)
    warnings = [e for e in events if e["level"] == "WARN"]
    assert [e["message"] for e in warnings] == ["Skipping unsupported file"]
    completed = [e for e in events if e["message"] == "Asset optimization completed"][0]
    assert completed["errors"] == 0
    assert completed["warnings"] == 1
    assert not list((source / "dist").glob("old.*"))


def test_cli_help_smoke() -> None:
    """Ensure the installed CLI entrypoint responds to --help."""
    result = subprocess.run(
        ["optimize-assets", "--help"],
        capture_output=True,
        text=True,
        check=False,
    )

    assert result.returncode == 0, result.stderr
    assert "Optimize images" in result.stdout
