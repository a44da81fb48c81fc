from express_openapi.analyzer.scanning import (
    destructured_names,
    enclosed,
    object_entries,
    split_top_level,
    strip_comments,
)


class TestEnclosed:
    def test_nested_brackets(self):
        text = "res.json({ a: f(1), b: [2] }) + 1"
        assert enclosed(text, text.index("(")) == "{ a: f(1), b: [2] }"

    def test_brackets_inside_strings_ignored(self):
        text = "send(')' + \"(\")"
        assert enclosed(text, 4) == "')' + \"(\""

    def test_unterminated_returns_rest(self):
        assert enclosed("json({ a: 1", 4) == "{ a: 1"


class TestSplitTopLevel:
    def test_nested_commas_kept(self):
        assert split_top_level("a, f(b, c), { d, e }") == ["a", "f(b, c)", "{ d, e }"]

    def test_trailing_comma(self):
        assert split_top_level("a, b,") == ["a", "b"]


class TestObjectEntries:
    def test_pairs_and_shorthand(self):
        assert object_entries(" title: req.body.title, completed ") == [
            ("title", "req.body.title"),
            ("completed", None),
        ]

    def test_quoted_key_and_spread(self):
        assert object_entries("...rest, 'name': x") == [("name", "x")]


class TestDestructuredNames:
    def test_aliases_defaults_and_rest(self):
        assert destructured_names(" page = 1, sort: order, ...others ") == ["page", "sort"]

    def test_comments_between_names(self):
        assert destructured_names("\n  // search term\n  q,\n  /* paging */ page\n") == ["q", "page"]


class TestComments:
    def test_strip_comments_keeps_strings(self):
        text = "a, // don't\n b: 'http://x', /* c */ d"
        assert strip_comments(text) == "a,  \n b: 'http://x',   d"

    def test_enclosed_ignores_quotes_in_comments(self):
        text = "json({\n // don't expose internals\n ok: true })\nres.end()"
        assert enclosed(text, 4) == "{\n // don't expose internals\n ok: true }"

    def test_object_entries_skip_commented_lines(self):
        literal = "\n // don't expose internals\n success: true,\n count: 3, /* total */\n"
        assert object_entries(literal) == [("success", "true"), ("count", "3")]

    def test_split_top_level_ignores_commas_in_comments(self):
        assert split_top_level("a /* x, y */, b // c, d\n") == ["a", "b"]
