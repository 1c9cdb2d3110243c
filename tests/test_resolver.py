import os

import pytest

from cjs2esm.transformer import resolve_specifier


@pytest.fixture
def project(tmp_path):
    (tmp_path / "util.js").write_text("module.exports = {};\n", encoding="utf-8")
    (tmp_path / "index.js").write_text("", encoding="utf-8")
    (tmp_path / "lib").mkdir()
    (tmp_path / "lib" / "index.js").write_text("", encoding="utf-8")
    (tmp_path / "both").mkdir()
    (tmp_path / "both" / "index.js").write_text("", encoding="utf-8")
    (tmp_path / "both.js").write_text("", encoding="utf-8")
    (tmp_path / "typed.mjs").write_text("", encoding="utf-8")
    (tmp_path / "src").mkdir()
    return tmp_path


@pytest.mark.parametrize("specifier", ["node:path", "dayjs", "@scope/pkg", "lodash/fp", ".."])
def test_bare_specifiers_pass_through(project, specifier):
    resolved = resolve_specifier(str(project), specifier)
    assert resolved.path == specifier
    assert not resolved.is_local


def test_bare_specifiers_never_probe():
    probed = []

    def exists(path):
        probed.append(path)
        return True

    resolve_specifier("/anywhere", "express", exists=exists)
    assert probed == []


def test_dot_resolves_to_index(project):
    resolved = resolve_specifier(str(project), ".")
    assert resolved.path == "./index.js"
    assert resolved.is_local and resolved.found


def test_dot_without_index_is_unchanged(project):
    resolved = resolve_specifier(str(project / "src"), ".")
    assert resolved.path == "."
    assert resolved.is_local and not resolved.found


def test_file_extension_is_appended(project):
    assert resolve_specifier(str(project), "./util").path == "./util.js"


def test_directory_index_is_appended(project):
    assert resolve_specifier(str(project), "./lib").path == "./lib/index.js"
    assert resolve_specifier(str(project), "./lib/").path == "./lib/index.js"


def test_file_wins_over_directory(project):
    assert resolve_specifier(str(project), "./both").path == "./both.js"


def test_parent_relative_specifier(project):
    resolved = resolve_specifier(str(project / "src"), "../util")
    assert resolved.path == "../util.js"
    assert resolved.is_local


def test_existing_extension_is_kept(project):
    resolved = resolve_specifier(str(project), "./data.json")
    assert resolved.path == "./data.json"
    assert resolved.is_local
    assert not resolved.found


def test_unresolvable_specifier_is_unchanged(project):
    resolved = resolve_specifier(str(project), "./missing")
    assert resolved.path == "./missing"
    assert resolved.is_local
    assert not resolved.found


def test_extensions_are_probed_in_order(project):
    resolved = resolve_specifier(str(project), "./typed", extensions=(".js", ".mjs"))
    assert resolved.path == "./typed.mjs"


def test_custom_exists_predicate():
    seen = []

    def exists(path):
        seen.append(path)
        return path == os.path.join("base", "./mod/index.js")

    resolved = resolve_specifier("base", "./mod", exists=exists)
    assert resolved.path == "./mod/index.js"
    assert seen == [os.path.join("base", "./mod.js"), os.path.join("base", "./mod/index.js")]
