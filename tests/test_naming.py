"""Tests for output name templating."""

import pytest

from precompress.engine.naming import (
    PathParts,
    keeps_content_name,
    render_filename,
    split_path,
    substitute_tokens,
)


class TestSplitPath:
    """Test splitting asset names into path parts."""

    def test_simple_name(self):
        """Test a name without directory, query or fragment."""
        parts = split_path("app.js")

        assert parts.file == "app.js"
        assert parts.path == ""
        assert parts.base == "app.js"
        assert parts.name == "app"
        assert parts.ext == ".js"
        assert parts.query == ""
        assert parts.fragment == ""

    def test_nested_name_with_query_and_fragment(self):
        """Test a name carrying directories, a query and a fragment."""
        parts = split_path("static/js/app.min.js?v=2#top")

        assert parts.file == "static/js/app.min.js"
        assert parts.query == "?v=2"
        assert parts.fragment == "#top"
        assert parts.path == "static/js/"
        assert parts.base == "app.min.js"
        assert parts.name == "app.min"
        assert parts.ext == ".js"

    def test_name_without_extension(self):
        """Test a name without an extension."""
        parts = split_path("assets/LICENSE")

        assert parts.base == "LICENSE"
        assert parts.name == "LICENSE"
        assert parts.ext == ""


class TestRenderFilename:
    """Test rendering output names."""

    def test_default_pattern(self):
        """Test the default gzip pattern."""
        assert render_filename("[path][base].gz", split_path("js/app.js")) == "js/app.js.gz"

    def test_all_tokens(self):
        """Test that every supported token is substituted."""
        parts = split_path("css/site.css?v=1#x")
        name = render_filename("[path][name][ext].br[query][fragment]|[file]", parts)

        assert name == "css/site.css.br?v=1#x|css/site.css"

    def test_unknown_tokens_are_kept(self):
        """Test that unknown tokens pass through unchanged."""
        parts = split_path("app.js")

        assert render_filename("[path][base].[hash].gz", parts) == "app.js.[hash].gz"

    def test_callable_pattern(self):
        """Test a pattern computed from the path parts."""
        parts = split_path("img/logo.svg")

        def pattern(path_parts: PathParts) -> str:
            return "[path][name].svgz" if path_parts.ext == ".svg" else "[path][base].gz"

        assert render_filename(pattern, parts) == "img/logo.svgz"

    def test_render_is_pure(self):
        """Test that identical inputs always give the same name."""
        parts = split_path("a/b/c.txt?q")

        results = {render_filename("[path][base].gz[query]", parts) for _ in range(5)}

        assert results == {"a/b/c.txt.gz?q"}

    def test_substitute_tokens_only_replaces_known(self):
        """Test substitution on a raw template."""
        assert substitute_tokens("[base]-[unknown]", split_path("x.js")) == "x.js-[unknown]"


class TestKeepsContentName:
    """Test detection of name-derived tokens."""

    @pytest.mark.parametrize("template", ["[name].gz", "[path][base].gz", "[file].br"])
    def test_content_tokens(self, template):
        assert keeps_content_name(template) is True

    def test_static_name(self):
        assert keeps_content_name("[path]bundle.gz") is False
