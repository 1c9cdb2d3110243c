from cjs2esm import TransformOptions, transform_source
from cjs2esm.emitter import emit_program
from cjs2esm.transformer import PolyfillState, build_polyfill

OPTIONS = TransformOptions(exists=lambda path: False)

URL_IMPORT = 'import { fileURLToPath } from "node:url";'
PATH_IMPORT = 'import { dirname } from "node:path";'
DIRNAME_CONST = "const __dirname = dirname(fileURLToPath(import.meta.url));"
FILENAME_CONST = "const __filename = fileURLToPath(import.meta.url);"


def _code(source: str) -> str:
    return transform_source(source, options=OPTIONS).code


def _render(statements):
    source = ""
    program = {"type": "Program", "body": statements}
    for statement in statements:
        statement["span"] = (0, 0)
    return emit_program(program, source).source.splitlines()


def test_no_references_inject_nothing():
    assert build_polyfill(PolyfillState()) == []
    assert _code("console.log(dir);\n") == "console.log(dir);\n"


def test_both_identifiers_inject_four_statements_in_order():
    lines = _render(build_polyfill(PolyfillState(dirname_used=True, filename_used=True)))
    assert lines == [URL_IMPORT, PATH_IMPORT, DIRNAME_CONST, FILENAME_CONST]


def test_dirname_only():
    lines = _render(build_polyfill(PolyfillState(dirname_used=True)))
    assert lines == [URL_IMPORT, PATH_IMPORT, DIRNAME_CONST]


def test_filename_only_scenario():
    assert _code("console.log(__filename);\n") == (
        f"{URL_IMPORT}\n{FILENAME_CONST}\nconsole.log(__filename);\n"
    )


def test_polyfill_precedes_rewritten_imports():
    source = (
        "// entry point\n"
        'const path = require("node:path");\n'
        'const config = path.join(__dirname, "config.json");\n'
        "console.log(__filename, config);\n"
    )
    assert _code(source) == (
        "// entry point\n"
        f"{URL_IMPORT}\n"
        f"{PATH_IMPORT}\n"
        f"{DIRNAME_CONST}\n"
        f"{FILENAME_CONST}\n"
        'import path from "node:path";\n'
        'const config = path.join(__dirname, "config.json");\n'
        "console.log(__filename, config);\n"
    )


def test_references_in_nested_scopes_count():
    source = "function where() {\n  return { dir: __dirname };\n}\n"
    assert _code(source).startswith(f"{URL_IMPORT}\n{PATH_IMPORT}\n{DIRNAME_CONST}\n")


def test_property_names_are_not_references():
    source = "const info = { __dirname: 1 };\nconsole.log(info.__filename);\n"
    assert _code(source) == source


def test_shorthand_property_is_a_reference():
    source = "module.exports = { __filename };\n"
    result = transform_source(source, options=OPTIONS)
    assert result.code == (
        f"{URL_IMPORT}\n{FILENAME_CONST}\n"
        "export { __filename };\nexport default { __filename };\n"
    )
    assert result.diagnostics == []


def test_colliding_helper_names_are_aliased():
    source = (
        'const { dirname } = require("node:path");\n'
        "function fileURLToPath() {}\n"
        "console.log(dirname(__dirname));\n"
    )
    assert _code(source) == (
        'import { fileURLToPath as _fileURLToPath } from "node:url";\n'
        'import { dirname as _dirname } from "node:path";\n'
        "const __dirname = _dirname(_fileURLToPath(import.meta.url));\n"
        'import { dirname } from "node:path";\n'
        "function fileURLToPath() {}\n"
        "console.log(dirname(__dirname));\n"
    )


def test_collision_in_inner_scope_is_aliased():
    source = "function f(dirname) { return dirname; }\nf(__dirname);\n"
    code = _code(source)
    assert 'import { dirname as _dirname } from "node:path";' in code
    assert "function f(dirname) { return dirname; }" in code


def test_user_declared_ambient_is_not_redeclared():
    source = 'const __dirname = "/srv";\nconsole.log(__dirname, __filename);\n'
    assert _code(source) == (
        f"{URL_IMPORT}\n{FILENAME_CONST}\n" + source
    )
