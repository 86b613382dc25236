"""Test the lexical scanner: dispatch order, token kinds and edge cases."""

from linetok.lexer import Lexer, tokenize
from linetok.tokens import TokenKind

from .conftest import assert_kinds, assert_partition, assert_texts

K = TokenKind


class TestKeywords:
    def test_def_statement(self):
        tokens = tokenize("def foo(): pass")
        assert_kinds(
            tokens,
            [K.KEYWORD, K.WHITESPACE, K.IDENTIFIER, K.PUNCTUATION, K.PUNCTUATION, K.PUNCTUATION, K.WHITESPACE, K.KEYWORD],
        )
        assert_texts(tokens, ["def", " ", "foo", "(", ")", ":", " ", "pass"])

    def test_constants_are_keywords(self):
        tokens = tokenize("True False None")
        assert [t.kind for t in tokens if t.kind != K.WHITESPACE] == [K.KEYWORD] * 3

    def test_keyword_prefix_is_identifier(self):
        tokens = tokenize("define")
        assert_kinds(tokens, [K.IDENTIFIER])

    def test_case_sensitive(self):
        tokens = tokenize("Def")
        assert_kinds(tokens, [K.IDENTIFIER])

    def test_soft_keywords_not_reserved(self):
        tokens = tokenize("async await match")
        assert [t.kind for t in tokens if t.kind != K.WHITESPACE] == [K.IDENTIFIER] * 3


class TestIdentifiers:
    def test_underscore_start(self):
        assert_kinds(tokenize("_private"), [K.IDENTIFIER])

    def test_digits_inside(self):
        tokens = tokenize("x1y2")
        assert_kinds(tokens, [K.IDENTIFIER])
        assert tokens[0].text == "x1y2"

    def test_non_ascii_letters_are_unknown(self):
        tokens = tokenize("é")
        assert_kinds(tokens, [K.UNKNOWN])


class TestStrings:
    def test_escaped_quote_does_not_terminate(self):
        source = '"a\\"b"'
        tokens = tokenize(source)
        assert_kinds(tokens, [K.STRING])
        assert tokens[0].text == source

    def test_single_quotes(self):
        tokens = tokenize("'it'")
        assert_kinds(tokens, [K.STRING])

    def test_other_quote_inside(self):
        tokens = tokenize("\"it's\"")
        assert_kinds(tokens, [K.STRING])
        assert tokens[0].end == 6

    def test_unterminated_runs_to_end(self):
        source = '"abc\ndef'
        tokens = tokenize(source)
        assert_kinds(tokens, [K.STRING])
        assert tokens[0].end == len(source)

    def test_trailing_backslash(self):
        source = '"abc\\'
        tokens = tokenize(source)
        assert_kinds(tokens, [K.STRING])
        assert tokens[0].text == source

    def test_lone_quote(self):
        tokens = tokenize("'")
        assert_kinds(tokens, [K.STRING])

    def test_string_then_code(self):
        tokens = tokenize("'a'+b")
        assert_kinds(tokens, [K.STRING, K.OPERATOR, K.IDENTIFIER])


class TestNumbers:
    def test_integer(self):
        assert_kinds(tokenize("42"), [K.NUMBER])

    def test_float(self):
        tokens = tokenize("3.14")
        assert_kinds(tokens, [K.NUMBER])
        assert tokens[0].text == "3.14"

    def test_multiple_dots_one_token(self):
        tokens = tokenize("1.2.3")
        assert_kinds(tokens, [K.NUMBER])
        assert tokens[0].text == "1.2.3"

    def test_leading_dot_is_punctuation(self):
        tokens = tokenize(".5")
        assert_kinds(tokens, [K.PUNCTUATION, K.NUMBER])

    def test_number_then_identifier(self):
        tokens = tokenize("1abc")
        assert_kinds(tokens, [K.NUMBER, K.IDENTIFIER])


class TestComments:
    def test_comment_excludes_newline(self):
        tokens = tokenize("# note\nx")
        assert_kinds(tokens, [K.COMMENT, K.WHITESPACE, K.IDENTIFIER])
        assert tokens[0].text == "# note"

    def test_comment_at_end(self):
        tokens = tokenize("x  # trailing")
        assert tokens[-1].kind == K.COMMENT
        assert tokens[-1].end == len("x  # trailing")

    def test_hash_inside_string(self):
        tokens = tokenize("'#not'")
        assert_kinds(tokens, [K.STRING])


class TestOperatorsAndPunctuation:
    def test_each_operator_is_single_char(self):
        source = "+-*/=<>!&|%^~"
        tokens = tokenize(source)
        assert_kinds(tokens, [K.OPERATOR] * len(source))

    def test_compound_operator_split(self):
        tokens = tokenize("==")
        assert_kinds(tokens, [K.OPERATOR, K.OPERATOR])

    def test_punctuation(self):
        source = "()[]{},.;:"
        assert_kinds(tokenize(source), [K.PUNCTUATION] * len(source))

    def test_unknown(self):
        tokens = tokenize("@$?")
        assert_kinds(tokens, [K.UNKNOWN] * 3)
        assert all(len(t) == 1 for t in tokens)


class TestWhitespace:
    def test_maximal_run(self):
        tokens = tokenize(" \t\r\n  x")
        assert_kinds(tokens, [K.WHITESPACE, K.IDENTIFIER])
        assert tokens[0].text == " \t\r\n  "

    def test_other_unicode_space_is_unknown(self):
        assert_kinds(tokenize("\u00a0"), [K.UNKNOWN])


class TestCoverage:
    def test_empty_source(self):
        assert tokenize("") == []

    def test_program_covered(self):
        source = 'class A:\n    def f(self, x=1.5):\n        return "s" + x  # c\n'
        assert_partition(tokenize(source), source)

    def test_lexer_class_matches_function(self):
        source = "x = [1, 2]"
        assert Lexer(source).tokenize() == tokenize(source)

    def test_idempotent(self):
        source = "for i in range(3): print(i)"
        assert tokenize(source) == tokenize(source)

    def test_package_level_tokenize(self):
        import linetok

        assert linetok.tokenize("pass") == tokenize("pass")
