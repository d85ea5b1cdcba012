"""Tests for warble.templating.compiler — tree walk to TemplateSet."""

import os
from pathlib import Path

import pytest
from jinja2 import TemplateSyntaxError

from warble.config import Delims
from warble.errors import CompilationError, TemplateNotFound
from warble.fs import AssetFS, File, LocalFS
from warble.templating import compile_templates, create_environment, match_extension


class TestMatchExtension:
    def test_first_match_wins(self) -> None:
        assert match_extension("a/b.tmpl", (".tmpl", ".html")) == ".tmpl"
        assert match_extension("a/b.html", (".tmpl", ".html")) == ".html"

    def test_no_match(self) -> None:
        assert match_extension("b.txt", (".tmpl",)) is None

    def test_bare_extension_is_not_a_template(self) -> None:
        assert match_extension("dir/.tmpl", (".tmpl",)) is None


class TestCompileTemplates:
    def test_names_strip_extension(self, fixtures_dir: Path) -> None:
        templates = compile_templates(LocalFS(fixtures_dir / "basic"))
        assert "hello" in templates
        assert "admin/index" in templates
        assert "hypertext" not in templates

    def test_multiple_extensions(self, fixtures_dir: Path) -> None:
        templates = compile_templates(LocalFS(fixtures_dir / "basic"), extensions=(".tmpl", ".html"))
        assert templates.require("hypertext").render() == "Hypertext!\n"

    def test_directories_named_like_templates(self, fixtures_dir: Path) -> None:
        templates = compile_templates(LocalFS(fixtures_dir / "template-dir-test"))
        assert templates.lookup("0") is not None
        assert templates.lookup("subdir/1") is not None
        assert templates.lookup("dedicated.tmpl/notbad") is not None
        assert templates.lookup("dedicated") is None

    def test_missing_root_is_empty(self, tmp_path: Path) -> None:
        templates = compile_templates(LocalFS(tmp_path / "missing"))
        assert len(templates) == 0

    def test_asset_fs(self) -> None:
        fs = AssetFS.from_mapping({"index.tmpl": "Hi {{ name }}", "notes.txt": "skip"})
        templates = compile_templates(fs)
        assert list(templates) == ["index"]
        assert templates["index"].render(name="there") == "Hi there"

    def test_require_missing(self) -> None:
        templates = compile_templates(AssetFS.from_mapping({}))
        with pytest.raises(TemplateNotFound) as exc_info:
            templates.require("nope")
        assert exc_info.value.name == "nope"
        assert str(exc_info.value) == 'template "nope" is undefined'

    def test_parse_errors_are_collected(self) -> None:
        fs = AssetFS.from_mapping(
            {
                "bad1.tmpl": "{% if %}",
                "good.tmpl": "fine",
                "bad2.tmpl": "{{ unclosed",
            }
        )
        with pytest.raises(CompilationError) as exc_info:
            compile_templates(fs)

        failures = exc_info.value.failures
        assert sorted(f.path for f in failures) == ["bad1.tmpl", "bad2.tmpl"]
        assert all(isinstance(f.error, TemplateSyntaxError) for f in failures)
        assert "bad1.tmpl" in str(exc_info.value)

    def test_read_errors_are_collected(self) -> None:
        def asset(name: str) -> bytes:
            if name == "broken.tmpl":
                raise PermissionError(name)
            return b"ok"

        fs = AssetFS(asset, lambda: ["broken.tmpl", "ok.tmpl"])
        with pytest.raises(CompilationError) as exc_info:
            compile_templates(fs)
        assert [f.path for f in exc_info.value.failures] == ["broken.tmpl"]

    def test_custom_delims(self, fixtures_dir: Path) -> None:
        templates = compile_templates(LocalFS(fixtures_dir / "basic"), delims=Delims("{[{", "}]}"))
        assert templates.require("delims").render(data="gophers") == "<h1>Hello gophers</h1>"

    def test_include_resolves_within_set(self) -> None:
        fs = AssetFS.from_mapping({"page.tmpl": "[{% include 'part' %}]", "part.tmpl": "part"})
        assert compile_templates(fs).require("page").render() == "[part]"


class _LockedSubdir:
    """A local tree whose ``locked`` directory cannot be listed."""

    def __init__(self, root: Path) -> None:
        self._inner = LocalFS(root)

    def open(self, path: str) -> File:
        if path == "locked":
            raise PermissionError(path)
        return self._inner.open(path)


class TestUnreadableEntries:
    def test_dangling_symlink_in_root(self, tmp_path: Path) -> None:
        (tmp_path / "page.tmpl").write_text("hi")
        os.symlink(tmp_path / "nowhere", tmp_path / ".#page.tmpl")

        templates = compile_templates(LocalFS(tmp_path))
        assert list(templates) == ["page"]
        assert templates.require("page").render() == "hi"

    def test_dangling_symlink_in_subdirectory(self, tmp_path: Path) -> None:
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "x.tmpl").write_text("x")
        os.symlink(tmp_path / "nowhere", tmp_path / "sub" / "stale.txt")

        templates = compile_templates(LocalFS(tmp_path))
        assert templates.require("sub/x").render() == "x"

    def test_listing_error_propagates(self, tmp_path: Path) -> None:
        (tmp_path / "page.tmpl").write_text("hi")
        (tmp_path / "locked").mkdir()
        (tmp_path / "locked" / "secret.tmpl").write_text("s")

        with pytest.raises(PermissionError):
            compile_templates(_LockedSubdir(tmp_path))


class TestCreateEnvironment:
    def test_bundles_apply_in_order_builtins_last(self) -> None:
        env = create_environment(
            {},
            funcs=[
                {"greet": lambda: "first", "other": lambda: "other"},
                {"greet": lambda: "second", "current": lambda: "mine"},
            ],
        )
        assert env.globals["greet"]() == "second"
        assert env.globals["other"]() == "other"
        assert env.globals["current"]() == ""

    def test_strict_undefined(self) -> None:
        from jinja2 import UndefinedError

        env = create_environment({"t": "{{ missing }}"})
        with pytest.raises(UndefinedError):
            env.get_template("t").render()

        lenient = create_environment({"t": "[{{ missing }}]"}, strict_undefined=False)
        assert lenient.get_template("t").render() == "[]"

    def test_autoescape(self) -> None:
        env = create_environment({"t": "{{ v }}"})
        assert env.get_template("t").render(v="<b>") == "&lt;b&gt;"
        raw = create_environment({"t": "{{ v }}"}, autoescape=False)
        assert raw.get_template("t").render(v="<b>") == "<b>"
