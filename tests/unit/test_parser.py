"""Unit tests for the tolerant JSON parser."""

from __future__ import annotations

from jsonls.document.parser import (
    MAX_NESTING_DEPTH,
    NodeKind,
    ParseErrorCode,
    node_at_offset,
    node_path,
    node_value,
    parse,
)


class TestParseTree:
    """Well-formed documents produce a complete offset-annotated tree."""

    def test_object_with_mixed_values(self):
        text = '{"a": [1, 2.5, true, null, "x"], "b": {}}'
        result = parse(text)

        assert result.errors == ()
        assert result.root.kind is NodeKind.OBJECT
        assert result.root.offset == 0
        assert result.root.length == len(text)
        assert node_value(result.root) == {"a": [1, 2.5, True, None, "x"], "b": {}}

    def test_property_nodes_hold_key_and_value(self):
        result = parse('{"name": "x"}')
        prop = result.root.children[0]

        assert prop.kind is NodeKind.PROPERTY
        key, value = prop.children
        assert key.value == "name"
        assert value.kind is NodeKind.STRING
        assert value.offset == 9
        assert value.length == 3
        assert prop.colon_offset == 7

    def test_string_escapes_are_decoded(self):
        result = parse(r'"a\nbA"')
        assert result.root.value == "a\nbA"

    def test_escaped_surrogate_pair_is_one_code_point(self):
        result = parse(r'"\ud83d\ude00"')
        assert result.errors == ()
        assert result.root.value == "\U0001F600"
        assert len(result.root.value) == 1

    def test_unpaired_surrogates_are_kept(self):
        assert parse(r'"\ud83d"').root.value == "\ud83d"
        assert parse(r'"\ud83d\u0041"').root.value == "\ud83dA"
        assert parse(r'"\ude00\ud83d"').root.value == "\ude00\ud83d"

    def test_parent_links(self):
        result = parse('[[1]]')
        inner = result.root.children[0]
        assert inner.parent is result.root
        assert inner.children[0].parent is inner


class TestParseErrors:
    """Malformed input is reported, never raised."""

    def test_empty_document(self):
        result = parse("")
        assert result.root is None
        assert [error.code for error in result.errors] == [ParseErrorCode.VALUE_EXPECTED]

    def test_missing_colon(self):
        result = parse('{"a" 1}')
        assert ParseErrorCode.COLON_EXPECTED in [error.code for error in result.errors]
        assert result.root.kind is NodeKind.OBJECT

    def test_trailing_comma_in_object(self):
        result = parse('{"a":1,}')
        codes = [(error.code, error.offset) for error in result.errors]
        assert codes == [
            (ParseErrorCode.PROPERTY_NAME_EXPECTED, 7),
            (ParseErrorCode.VALUE_EXPECTED, 7),
        ]

    def test_content_after_document_end(self):
        result = parse('{"a":1} 2')
        assert [error.code for error in result.errors] == [ParseErrorCode.END_OF_FILE_EXPECTED]

    def test_comments_are_rejected_but_parsed_around(self):
        result = parse('{"a":1 // note\n}')
        assert [error.code for error in result.errors] == [ParseErrorCode.INVALID_COMMENT_TOKEN]
        assert node_value(result.root) == {"a": 1}

    def test_unterminated_string(self):
        result = parse('"abc')
        assert ParseErrorCode.UNEXPECTED_END_OF_STRING in [error.code for error in result.errors]

    def test_missing_close_bracket(self):
        result = parse("[1, 2")
        assert ParseErrorCode.CLOSE_BRACKET_EXPECTED in [error.code for error in result.errors]
        assert node_value(result.root) == [1, 2]


class TestNestingLimit:
    """Nesting past MAX_NESTING_DEPTH is reported instead of exhausting the stack."""

    def test_deep_arrays(self):
        text = "[" * 3000 + "]" * 3000
        result = parse(text)

        assert [(error.code, error.offset) for error in result.errors] == [
            (ParseErrorCode.NESTING_TOO_DEEP, MAX_NESTING_DEPTH)
        ]
        assert result.root.kind is NodeKind.ARRAY
        assert result.root.length == len(text)

        node = result.root
        for _ in range(MAX_NESTING_DEPTH):
            node = node.children[0]
        assert node.kind is NodeKind.ARRAY
        assert node.children == []
        assert node.offset == MAX_NESTING_DEPTH
        assert node.length == len(text) - 2 * MAX_NESTING_DEPTH

    def test_deep_arrays_stay_walkable(self):
        root = parse("[" * 3000 + "]" * 3000).root

        value = node_value(root)
        for _ in range(MAX_NESTING_DEPTH):
            value = value[0]
        assert value == []

        deepest = node_at_offset(root, 2999)
        assert deepest.offset == MAX_NESTING_DEPTH
        assert node_path(deepest) == [0] * MAX_NESTING_DEPTH

    def test_deep_objects(self):
        text = '{"a":' * 3000 + "1" + "}" * 3000
        result = parse(text)

        assert [(error.code, error.offset) for error in result.errors] == [
            (ParseErrorCode.NESTING_TOO_DEEP, 5 * MAX_NESTING_DEPTH)
        ]
        assert result.root.length == len(text)
        value = node_value(result.root)
        for _ in range(MAX_NESTING_DEPTH):
            value = value["a"]
        assert value == {}

    def test_siblings_after_skipped_container_are_parsed(self):
        text = "[" * (MAX_NESTING_DEPTH + 2) + "]" * (MAX_NESTING_DEPTH + 1) + ", 7]"
        result = parse(text)

        assert [error.code for error in result.errors] == [ParseErrorCode.NESTING_TOO_DEEP]
        assert node_value(result.root)[-1] == 7

    def test_nesting_at_the_limit_is_accepted(self):
        result = parse("[" * MAX_NESTING_DEPTH + "]" * MAX_NESTING_DEPTH)
        assert result.errors == ()

class TestNodeLookup:
    def test_deepest_node_at_offset(self):
        root = parse('{"name": "x"}').root
        node = node_at_offset(root, 10)
        assert node.kind is NodeKind.STRING
        assert node.value == "x"

    def test_offset_outside_any_child_falls_back_to_root(self):
        root = parse('{"name": "x"}').root
        assert node_at_offset(root, 100) is root

    def test_no_root(self):
        assert node_at_offset(None, 0) is None

    def test_right_bound_is_opt_in(self):
        root = parse("[12]").root
        assert node_at_offset(root, 3) is root
        assert node_at_offset(root, 3, include_right_bound=True).value == 12

    def test_path_through_arrays(self):
        root = parse('{"tags": ["a", "b", "c"]}').root
        node = node_at_offset(root, 16)
        assert node.value == "b"
        assert node_path(node) == ["tags", 1]

    def test_path_of_property_node(self):
        root = parse('{"outer": {"inner": 1}}').root
        prop = root.children[0].children[1].children[0]
        assert prop.kind is NodeKind.PROPERTY
        assert node_path(prop) == ["outer", "inner"]

    def test_path_of_root(self):
        root = parse("{}").root
        assert node_path(root) == []
