"""Unit tests for the pattern compiler and matcher."""

import pytest

from globwatch.pattern import Pattern, PatternError, TokenType, compile, match


MATCH_CASES = [
    ("main.go", "main.go", True),
    ("main_test.go", "main_test.go", True),
    ("foo/foo_test.go", "foo/foo_test.go", True),
    ("?.go", "m.go", True),
    ("*.go", "main.go", True),
    ("**/*.go", "main.go", True),
    ("*.go", "*.go", True),
    ("foo/bar.go", "foo/bar.go", True),
    ("foo/bar.go", "foo/bar.go/x", False),
    ("foo/bar.go", "foo/bar.g", False),
    ("foo/m?.go", "foo/ma.go", True),
    ("foo/m?.go", "foo/m/", False),
    ("**/m.go", "foo.go", False),
    ("**/m.go", "foo/a.go", False),
    ("**/m.go", "m.go", True),
    ("**/m.go", "a/m.go", True),
    ("**/m.go", "a/b/m.go", True),
    ("**/m.go", "m.go.bak", False),
    ("a/**/b", "a/b", True),
    ("a/**/b", "a/x/y/b", True),
    ("a/**/b", "a/x/y/c", False),
    ("a/**", "a/x/y", True),
    ("a/**", "a", False),
    ("a/**", "a/", True),
    ("**", "", True),
    ("**", "ab", True),
    ("**", "a/b/c", True),
    ("ab[cde]", "abc", True),
    ("ab[cde]", "abd", True),
    ("ab[cde]", "abe", True),
    ("ab[cde]", "abf", False),
    ("ab[+-\\-]", "ab-", True),
    ("ab[\\--a]", "ab-", True),
    ("[a-fA-F]", "a", True),
    ("[a-fA-F]", "f", True),
    ("[a-fA-F]", "A", True),
    ("[a-fA-F]", "F", True),
    ("[a-fA-F]", "g", False),
    ("a[^x]b", "a/b", False),
    ("abc", "abc", True),
    ("*", "abc", True),
    ("*c", "abc", True),
    ("a*", "a", True),
    ("a*", "abc", True),
    ("a*", "ab/c", False),
    ("a*/b", "abc/b", True),
    ("a*/b", "a/c/b", False),
    ("a*b*c*d*e*/f", "axbxcxdxe/f", True),
    ("a*b*c*d*e*/f", "axbxcxdxexxx/f", True),
    ("a*b*c*d*e*/f", "axbxcxdxe/xxx/f", False),
    ("a*b*c*d*e*/f", "axbxcxdxexxx/fff", False),
    ("a*b?c*x", "abxbbxdbxebxczzx", True),
    ("a*b?c*x", "abxbbxdbxebxczzy", False),
    ("ab[c]", "abc", True),
    ("ab[b-d]", "abc", True),
    ("ab[e-g]", "abc", False),
    ("ab[^c]", "abc", False),
    ("ab[^b-d]", "abc", False),
    ("ab[^e-g]", "abc", True),
    ("a\\*b", "a*b", True),
    ("a\\*b", "ab", False),
    ("a?b", "a☺b", True),
    ("a[^a]b", "a☺b", True),
    ("a???b", "a☺b", False),
    ("a[^a][^a][^a]b", "a☺b", False),
    ("[a-ζ]*", "α", True),
    ("*[a-ζ]", "A", False),
    ("a?b", "a/b", False),
    ("a*b", "a/b", False),
    ("[\\]a]", "]", True),
    ("[\\-]", "-", True),
    ("[x\\-]", "x", True),
    ("[x\\-]", "-", True),
    ("[x\\-]", "z", False),
    ("[\\-x]", "x", True),
    ("[\\-x]", "-", True),
    ("[\\-x]", "a", False),
    ("*x", "xxx", True),
]

INVALID_PATTERNS = [
    "a//b",
    "//",
    "foo//",
    "a[b",
    "a*?b",
    "a?*b",
    "*?.go",
    "?*.go",
    "**?.go",
    "**x",
    "**f",
    "***",
    "a**",
    "a**/b",
    "abc\\",
    "\\",
    "a]",
    "[a-",
    "[a-\\",
    "[\\",
    "[]a]",
    "[-]",
    "[x-]",
    "[-x]",
    "[a-b-c]",
    "[z-a]",
    "[",
    "[^",
    "[^]",
    "[^bc",
    "a[",
    "a/b[",
]


class TestMatch:
    """Test cases for matching compiled patterns."""

    @pytest.mark.parametrize("pattern,path,expected", MATCH_CASES)
    def test_match(self, pattern, path, expected):
        """Test a pattern against a path."""
        assert match(compile(pattern), path) is expected

    def test_match_is_repeatable(self):
        """Test that repeated matches give the same answer."""
        pattern = compile("**/*_test.go")

        results = [pattern.match("internal/tool/tool_test.go") for _ in range(3)]

        assert results == [True, True, True]
        assert pattern.match("internal/tool/tool.go") is False

    def test_empty_pattern_matches_empty_path_only(self):
        """Test the empty pattern."""
        pattern = compile("")

        assert pattern.match("") is True
        assert pattern.match("a") is False

    def test_many_stars_stop_at_separator(self):
        """Test that stars never consume the separator before the last segment."""
        pattern = compile("*a*a*a*a*/x")

        assert pattern.match("a" * 30 + "/y") is False


class TestCompile:
    """Test cases for the pattern compiler."""

    @pytest.mark.parametrize("pattern", INVALID_PATTERNS)
    def test_invalid_pattern(self, pattern):
        """Test that malformed patterns are rejected."""
        with pytest.raises(PatternError):
            compile(pattern)

    def test_error_is_value_error_with_position(self):
        """Test error details."""
        with pytest.raises(ValueError) as exc_info:
            compile("a//b")

        assert exc_info.value.pattern == "a//b"
        assert exc_info.value.position == 2

    def test_tokens(self):
        """Test the token sequence of a pattern using every operator."""
        pattern = compile("**/a?b*[^x-z0]\\*")

        assert [token.type for token in pattern.tokens] == [
            TokenType.ANY_DIRECTORIES,
            TokenType.SEPARATOR,
            TokenType.LITERAL,
            TokenType.SINGLE_WILDCARD,
            TokenType.LITERAL,
            TokenType.ANY_WILDCARD,
            TokenType.GROUP,
            TokenType.LITERAL,
        ]
        assert pattern.tokens[-1].char == "*"

    def test_group_token(self):
        """Test the payload of a group token."""
        (token,) = compile("[^x-z0\\]]").tokens

        assert token.type is TokenType.GROUP
        assert token.negated is True
        assert token.characters == frozenset({"0", "]"})
        assert token.ranges == (("x", "z"),)

    def test_trailing_any_directories(self):
        """Test that ** may end a pattern."""
        pattern = compile("src/**")

        assert pattern.tokens[-1].type is TokenType.ANY_DIRECTORIES

    def test_escaped_characters_are_literals(self):
        """Test that escapes remove any special meaning."""
        pattern = compile("\\[\\?\\/")

        assert [token.char for token in pattern.tokens] == ["[", "?", "/"]
        assert all(token.type is TokenType.LITERAL for token in pattern.tokens)

    def test_compile_is_deterministic(self):
        """Test that compiling twice yields equal patterns."""
        first = compile("**/*.[ch]")
        second = compile("**/*.[ch]")

        assert first == second
        assert first.tokens == second.tokens
        assert hash(first) == hash(second)
        assert first != compile("**/*.c")

    def test_pattern_text(self):
        """Test access to the source text."""
        pattern = compile("*.py")

        assert isinstance(pattern, Pattern)
        assert pattern.pattern == "*.py"
        assert str(pattern) == "*.py"
        assert repr(pattern) == "Pattern('*.py')"
