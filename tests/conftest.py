"""Shared fixtures for tagweave tests."""

import pytest

from tagweave import CompilerSettings, DictLoader, TemplateEngine


@pytest.fixture
def make_engine():
    """Build an engine over in-memory sources."""

    def _make(sources=None, **settings):
        return TemplateEngine(CompilerSettings(**settings), loader=DictLoader(sources or {}))

    return _make


@pytest.fixture
def render(make_engine):
    """Compile a page from source and return its rendered output."""

    def _render(src, this=None, sources=None, path="app/views/test/page.weave", **local_assigns):
        engine = make_engine(sources)
        compiled = engine.compile_string(src, path, local_names=local_assigns.keys())
        return compiled.environment.render_page(this, local_assigns).output

    return _render
