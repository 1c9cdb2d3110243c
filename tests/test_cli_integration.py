import os
import subprocess
import sys
from pathlib import Path

SRC = Path(__file__).resolve().parent.parent / "src"


def _run_cli(args, cwd: Path):
    env = os.environ.copy()
    pythonpath = env.get("PYTHONPATH", "")
    env["PYTHONPATH"] = str(SRC) + (os.pathsep + pythonpath if pythonpath else "")
    result = subprocess.run(
        [sys.executable, "-m", "cjs2esm.cli", *args],
        cwd=cwd,
        env=env,
        check=False,
        capture_output=True,
        text=True,
    )
    return result


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_cli_converts_to_mjs_by_default(tmp_path):
    _write(tmp_path / "util.js", "module.exports = {};\n")
    _write(tmp_path / "main.js", 'const util = require("./util");\nutil();\n')
    result = _run_cli(["convert", "main.js"], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    content = (tmp_path / "main.mjs").read_text(encoding="utf-8")
    assert content == 'import util from "./util.js";\nutil();\n'


def test_cli_out_and_in_place(tmp_path):
    source = _write(tmp_path / "app.js", 'const fs = require("node:fs");\n')
    output_path = tmp_path / "dist" / "app.mjs"
    result = _run_cli(["convert", str(source), "--out", str(output_path)], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    assert output_path.read_text(encoding="utf-8") == 'import fs from "node:fs";\n'

    result = _run_cli(["convert", str(source), "--in-place"], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    assert source.read_text(encoding="utf-8") == 'import fs from "node:fs";\n'


def test_cli_rejects_out_with_many_inputs(tmp_path):
    _write(tmp_path / "a.js", "")
    _write(tmp_path / "b.js", "")
    result = _run_cli(["convert", "a.js", "b.js", "--out", "x.mjs"], cwd=tmp_path)
    assert result.returncode == 2
    assert "--out requires a single input" in result.stderr


def test_cli_check_mode_prints_diff(tmp_path):
    source = _write(tmp_path / "app.js", 'const fs = require("node:fs");\n')
    result = _run_cli(["convert", "app.js", "--check"], cwd=tmp_path)
    assert result.returncode == 1
    assert '+import fs from "node:fs";' in result.stdout
    assert not (tmp_path / "app.mjs").exists()
    assert source.read_text(encoding="utf-8") == 'const fs = require("node:fs");\n'

    _write(tmp_path / "done.js", 'import fs from "node:fs";\n')
    result = _run_cli(["convert", "done.js", "--check"], cwd=tmp_path)
    assert result.returncode == 0
    assert result.stdout == ""


def test_cli_reports_diagnostics_and_strict_mode(tmp_path):
    _write(tmp_path / "dyn.js", "const mod = require(process.env.MOD);\n")
    result = _run_cli(["convert", "dyn.js"], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    assert "INFO" in result.stderr and "Dynamic require()" in result.stderr

    result = _run_cli(["convert", "dyn.js", "--strict"], cwd=tmp_path)
    assert result.returncode == 1


def test_cli_custom_extension(tmp_path):
    _write(tmp_path / "lib.cjs", "module.exports = 1;\n")
    _write(tmp_path / "main.js", 'const lib = require("./lib");\n')
    result = _run_cli(["convert", "main.js", "--ext", ".cjs"], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    assert (tmp_path / "main.mjs").read_text(encoding="utf-8") == 'import lib from "./lib.cjs";\n'


def test_cli_parse_error(tmp_path):
    _write(tmp_path / "bad.js", "const = ;\n")
    result = _run_cli(["convert", "bad.js"], cwd=tmp_path)
    assert result.returncode == 1
    assert "ERROR" in result.stderr and "bad.js" in result.stderr
    assert not (tmp_path / "bad.mjs").exists()


def test_cli_missing_input(tmp_path):
    result = _run_cli(["convert", "nope.js"], cwd=tmp_path)
    assert result.returncode == 1
    assert "Input file not found" in result.stderr
