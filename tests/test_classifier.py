import pytest

from cjs2esm.frontend import run_frontend
from cjs2esm.transformer import CallShape, classify_require


def _initializer(expression: str):
    result = run_frontend(f"const target = {expression};", analyze=False)
    assert result.parse.ast is not None
    return result.parse.ast["body"][0]["declarations"][0]["init"]


def test_plain_static_call():
    loader = classify_require(_initializer('require("node:fs")'))
    assert loader is not None
    assert loader.shape is CallShape.PLAIN
    assert loader.target == "node:fs"
    assert loader.is_static


def test_plain_dynamic_call():
    loader = classify_require(_initializer("require(name)"))
    assert loader is not None
    assert loader.shape is CallShape.PLAIN
    assert not loader.is_static
    assert loader.target_node["name"] == "name"


def test_template_literal_target_is_dynamic():
    loader = classify_require(_initializer("require(`./${name}`)"))
    assert loader is not None
    assert not loader.is_static


def test_factory_call_keeps_arguments():
    loader = classify_require(_initializer('require("packageA")({ name: 1 }, 2)'))
    assert loader is not None
    assert loader.shape is CallShape.FACTORY
    assert loader.target == "packageA"
    assert [arg["type"] for arg in loader.arguments] == ["ObjectExpression", "Literal"]


def test_member_access():
    loader = classify_require(_initializer('require("../x").a'))
    assert loader is not None
    assert loader.shape is CallShape.MEMBER
    assert loader.property_name == "a"
    assert loader.target == "../x"


@pytest.mark.parametrize(
    "expression",
    [
        'require("a")["b"]',
        'require("a").b.c',
        'require("a", "b")',
        "require()",
        "require(name)()",
        "require(name).a",
        'load("a")',
        'module.require("a")',
        'require("a")()()',
    ],
)
def test_unrecognized_shapes(expression):
    assert classify_require(_initializer(expression)) is None


def test_non_nodes_are_not_loader_calls():
    assert classify_require(None) is None
    assert classify_require({"type": "Identifier", "name": "require"}) is None
