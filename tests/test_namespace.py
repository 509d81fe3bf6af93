"""Tests for arbor.namespace: copy-on-write kida template namespaces."""

import pytest

from arbor.errors import ContentError
from arbor.namespace import Contribution, TemplateNamespace, error_block, is_template_error


class TestDefineAndRender:
    def test_render_with_data(self) -> None:
        ns = TemplateNamespace()
        ns.define("greeting", "Hello {{ name }}")
        assert ns.render("greeting", {"name": "World"}) == "Hello World"

    def test_autoescape(self) -> None:
        ns = TemplateNamespace()
        ns.define("a", "{{ value }}")
        assert ns.render("a", {"value": "<b>"}) == "&lt;b&gt;"

    def test_undefined_name_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            TemplateNamespace().render("missing", {})

    def test_syntax_error_is_content_error(self) -> None:
        ns = TemplateNamespace()
        with pytest.raises(ContentError, match="broken"):
            ns.define("broken", "{% if x %}never closed")
        assert "broken" not in ns

    def test_redefine_replaces(self) -> None:
        ns = TemplateNamespace()
        ns.define("a", "one")
        ns.define("a", "two")
        assert ns.render("a", {}) == "two"

    def test_template_local_context(self) -> None:
        ns = TemplateNamespace()
        ns.define("link", '<a href="{{ dirpath }}/x">x</a>', {"dirpath": "/blog"})
        assert ns.render("link", {"dirpath": "ignored"}) == '<a href="/blog/x">x</a>'

    def test_contribute(self) -> None:
        ns = TemplateNamespace()
        ns.contribute("c", Contribution("{{ n }}", {"n": 3}))
        assert ns.render("c", {}) == "3"


class TestEmbedding:
    def test_embed_other_template(self) -> None:
        ns = TemplateNamespace()
        ns.define("html", '<main>{{ template("main") }}</main>')
        ns.define("main", "<p>{{ who }}</p>")
        assert ns.render("html", {"who": "me"}) == "<main><p>me</p></main>"

    def test_embed_undefined_is_empty(self) -> None:
        ns = TemplateNamespace()
        ns.define("html", '<main>{{ template("main") }}</main>')
        assert ns.render("html", {}) == "<main></main>"

    def test_embedded_context_is_its_own(self) -> None:
        ns = TemplateNamespace()
        ns.define("html", '{{ dirpath }}|{{ template("main") }}', {"dirpath": "/a"})
        ns.define("main", "{{ dirpath }}", {"dirpath": "/a/b"})
        assert ns.render("html", {}) == "/a|/a/b"

    def test_cycle_fails(self) -> None:
        ns = TemplateNamespace()
        ns.define("loop", '{{ template("loop") }}')
        with pytest.raises(Exception):  # noqa: B017
            ns.render("loop", {})


class TestCopyOnWrite:
    def test_child_sees_parent_templates(self) -> None:
        parent = TemplateNamespace()
        parent.define("html", '[{{ template("main") }}]')
        child = parent.clone()
        child.define("main", "child")
        assert child.render("html", {}) == "[child]"

    def test_child_writes_do_not_leak(self) -> None:
        parent = TemplateNamespace()
        parent.define("a", "parent")
        child = parent.clone()
        child.define("a", "child")
        child.define("b", "new")
        assert parent.render("a", {}) == "parent"
        assert "b" not in parent

    def test_parent_writes_do_not_leak(self) -> None:
        parent = TemplateNamespace()
        parent.define("a", "parent")
        child = parent.clone()
        parent.define("a", "changed")
        assert child.render("a", {}) == "parent"

    def test_siblings_isolated(self) -> None:
        parent = TemplateNamespace()
        left, right = parent.clone(), parent.clone()
        left.define("x", "left")
        right.define("x", "right")
        assert left.render("x", {}) == "left"
        assert right.render("x", {}) == "right"
        assert len(parent) == 0


class TestCopyRename:
    def test_copy(self) -> None:
        ns = TemplateNamespace()
        ns.define("post", "body")
        ns.copy("main", "post")
        assert ns.render("main", {}) == "body"
        assert "post" in ns

    def test_rename(self) -> None:
        ns = TemplateNamespace()
        ns.define("post", "body")
        ns.rename("main", "post")
        assert ns.render("main", {}) == "body"
        assert "post" not in ns

    def test_missing_source(self) -> None:
        with pytest.raises(ContentError):
            TemplateNamespace().copy("a", "b")
        with pytest.raises(ContentError):
            TemplateNamespace().rename("a", "b")


class TestErrors:
    def test_define_error_renders_notice(self) -> None:
        ns = TemplateNamespace()
        ns.define_error("bad", "unexpected <tag>")
        html = ns.render("bad", {})
        assert "Error parsing template" in html
        assert "unexpected &lt;tag&gt;" in html

    def test_error_notice_embeds_unescaped(self) -> None:
        ns = TemplateNamespace()
        ns.define("html", '{{ template("bad") }}')
        ns.define_error("bad", "oops")
        assert ns.render("html", {}).startswith("<p ")

    def test_error_block(self) -> None:
        block = str(error_block("Error executing template", "a & b"))
        assert "border: solid red 2px" in block
        assert "Error executing template: a &amp; b" in block

    def test_is_template_error(self) -> None:
        ns = TemplateNamespace()
        try:
            ns.define("x", "{% for %}")
        except ContentError as exc:
            assert exc.__cause__ is not None
            assert is_template_error(exc.__cause__)
        assert not is_template_error(ValueError())
