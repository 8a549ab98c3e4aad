"""
Tests for the block parser (segments to template AST).
"""

import pytest

from stencil.expr import (
    FunctionRegistry,
    ParseError,
    TemplateLimits,
    ast_to_string,
    calculate_block_depth,
    count_template_nodes,
    iter_template_expressions,
    lex,
    parse_template,
)


def parse(template: str, functions: FunctionRegistry | None = None, limits=None):
    """Helper lexing and parsing a template."""
    if limits is None:
        return parse_template(lex(template), functions)
    return parse_template(lex(template, limits), functions, limits)


def nested_ifs(depth: int) -> str:
    return "{{if a}}" * depth + "x" + "{{endif}}" * depth


class TestStructure:
    """Tests for the shape of the template AST."""

    def test_text_and_outputs(self):
        ast = parse("Hi {{ name }} {{! html }}")
        assert ast.type == "Template"
        assert [c.type for c in ast.children] == ["Text", "Output", "Text", "RawOutput"]
        assert ast.children[1].expr.name == "name"

    def test_if_without_else(self):
        node = parse("{{if a}}yes{{endif}}").children[0]
        assert node.type == "If"
        assert node.condition.name == "a"
        assert [c.content for c in node.body] == ["yes"]
        assert node.elif_clauses == ()
        assert node.else_body is None

    def test_if_elif_else(self):
        node = parse("{{if a}}1{{elif b}}2{{elif c}}3{{else}}4{{endif}}").children[0]
        assert [clause.condition.name for clause in node.elif_clauses] == ["b", "c"]
        assert node.elif_clauses[1].body[0].content == "3"
        assert node.else_body[0].content == "4"

    def test_empty_else_is_not_none(self):
        node = parse("{{if a}}1{{else}}{{endif}}").children[0]
        assert node.else_body == ()

    def test_each(self):
        node = parse("{{each item in items}}{{ item }}{{endeach}}").children[0]
        assert node.type == "Each"
        assert node.variable_name == "item"
        assert node.iterable.name == "items"
        assert node.body[0].type == "Output"

    def test_each_over_expression(self):
        node = parse("{{each tag in post.tags}}{{endeach}}").children[0]
        assert node.iterable.type == "DotAccess"

    def test_nested_blocks(self):
        ast = parse("{{each r in rows}}{{if r.on}}{{ r.name }}{{endif}}{{endeach}}")
        each = ast.children[0]
        assert each.body[0].type == "If"
        assert calculate_block_depth(ast.children) == 2

    def test_count_template_nodes_includes_expressions(self):
        ast = parse("{{each r in rows}}{{if r.on}}{{ r.name }}{{endif}}{{endeach}}")
        assert count_template_nodes(ast.children) == 8

    def test_count_template_nodes_covers_all_branches(self):
        ast = parse("{{if a}}1{{elif b}}2{{else}}3{{endif}}")
        assert count_template_nodes(ast.children) == 7

    def test_iter_template_expressions_in_source_order(self):
        ast = parse(
            "{{if a}}{{ b }}{{elif c}}{{else}}{{ d }}{{endif}}"
            "{{each x in e}}{{! x }}{{endeach}}"
        )
        names = [e.name for e in iter_template_expressions(ast.children)]
        assert names == ["a", "b", "c", "d", "e", "x"]

    def test_ast_to_string_renders_template(self):
        text = ast_to_string(parse("a{{ b }}"))
        assert text == "Template:\n  Text: 'a'\n  Output:\n    FieldRef: b"


class TestBlockErrors:
    """Tests for malformed block structure."""

    def test_unexpected_endif(self):
        with pytest.raises(ParseError, match="Unexpected closing tag: endif"):
            parse("{{endif}}")

    def test_mismatched_closing_tag(self):
        with pytest.raises(
            ParseError, match=r"Unexpected closing tag: endeach \(expected endif\)"
        ):
            parse("{{if a}}x{{endeach}}")

    def test_else_without_if(self):
        with pytest.raises(ParseError, match="Unexpected else without matching if"):
            parse("{{else}}")

    def test_elif_without_if(self):
        with pytest.raises(ParseError, match="Unexpected elif without matching if"):
            parse("x{{elif a}}")

    def test_else_directly_inside_each(self):
        with pytest.raises(ParseError, match="Unexpected else without matching if"):
            parse("{{each x in y}}{{else}}{{endeach}}")

    def test_unclosed_if(self):
        with pytest.raises(ParseError, match="Unclosed block: expected endif"):
            parse("{{if a}}x")

    def test_unclosed_if_after_else(self):
        with pytest.raises(ParseError, match="Unclosed block: expected endif"):
            parse("{{if a}}x{{else}}y")

    def test_unclosed_each(self):
        with pytest.raises(ParseError, match="Unclosed block: expected endeach"):
            parse("{{each x in y}}x")

    def test_elif_after_else(self):
        with pytest.raises(ParseError, match="Unexpected elif after else"):
            parse("{{if a}}{{else}}{{elif b}}{{endif}}")

    def test_else_after_else(self):
        with pytest.raises(ParseError, match="Unexpected else after else"):
            parse("{{if a}}{{else}}{{else}}{{endif}}")

    @pytest.mark.parametrize(
        "tag",
        ["{{each items}}", "{{each x of items}}", "{{each x in }}", "{{each a b in c}}"],
    )
    def test_invalid_each_syntax(self, tag):
        with pytest.raises(ParseError, match="Invalid each syntax"):
            parse(tag + "{{endeach}}")

    def test_invalid_condition_expression(self):
        with pytest.raises(ParseError, match="Unexpected token"):
            parse("{{if a b}}x{{endif}}")


class TestNestingLimit:
    """Tests for the parse-time nesting limit."""

    def test_nesting_at_limit(self):
        ast = parse(nested_ifs(10))
        assert calculate_block_depth(ast.children) == 10

    def test_nesting_over_limit(self):
        with pytest.raises(ParseError, match="Maximum nesting depth of 10 exceeded"):
            parse(nested_ifs(11))

    def test_if_and_each_share_the_budget(self):
        template = "{{each x in xs}}{{if x}}" * 5 + "{{each y in ys}}x{{endeach}}"
        template += "{{endif}}{{endeach}}" * 5
        with pytest.raises(ParseError, match="nesting depth"):
            parse(template)

    def test_sibling_blocks_do_not_accumulate(self):
        ast = parse(nested_ifs(10) * 3)
        assert len(ast.children) == 3

    def test_custom_nesting_limit(self):
        with pytest.raises(ParseError, match="Maximum nesting depth of 2 exceeded"):
            parse(nested_ifs(3), limits=TemplateLimits(max_nesting_depth=2))


class TestFunctionValidation:
    """Tests for parse-time function checks."""

    def test_unknown_function_in_untaken_branch(self):
        with pytest.raises(ParseError, match="Unknown function: nope"):
            parse("{{if false}}{{ nope() }}{{endif}}")

    def test_unknown_function_in_each_iterable(self):
        with pytest.raises(ParseError, match="Unknown function: items"):
            parse("{{each x in items()}}{{endeach}}")

    def test_registered_function(self):
        functions = FunctionRegistry({"upper": lambda args, ctx: args[0]})
        ast = parse("{{ upper(name) }}", functions)
        assert ast.children[0].expr.type == "FunctionCall"
