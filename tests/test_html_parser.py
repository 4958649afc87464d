# File: tests/test_html_parser.py
from __future__ import annotations

import pytest

from font_spider.errors import SelectorQueryError
from font_spider.models import Resource
from font_spider.parser.html_parser import HtmlInterpreter
from font_spider.resource.paths import PathPipeline

PAGE = """<!DOCTYPE html>
<html>
<head>
  <link rel="stylesheet" href="css/main.css">
  <link rel="alternate stylesheet" href="css/dark.css" title="Dark">
  <link rel="Stylesheet icon" href="css/extra.css?v=3">
  <link rel="stylesheet" href="css/off.css" disabled>
  <link rel="stylesheet">
  <link rel="preload" href="fonts/demo.woff2">
  <link rel="stylesheet" href="css/vendor.css">
  <style>.a { font-family: Demo }</style>
  <style disabled>.b { font-family: Demo }</style>
  <script>var title = "never rendered";</script>
</head>
<body>
  <h1 class="title">Hello</h1>
  <p class="sub">World <span style="font-family: 'Demo'">!</span></p>
  <template><p class="title">hidden</p></template>
  <noscript><style>.n { color: red }</style>no script</noscript>
</body>
</html>
"""


async def parse(content: str, key: str = "/site/index.html", **pipeline_kw):
    interpreter = HtmlInterpreter(PathPipeline(**pipeline_kw))
    return await interpreter.parse(Resource(key, content, "local"))


@pytest.mark.asyncio()
async def test_css_files_keep_link_positions():
    view = await parse(PAGE, ignore=["vendor.css"])
    assert view.get_css_files() == [
        "/site/css/main.css",
        "/site/css/extra.css",
        None,
        None,
        None,
    ]


@pytest.mark.asyncio()
async def test_inline_style_contents_skip_disabled():
    view = await parse(PAGE)
    assert view.get_inline_style_contents() == [".a { font-family: Demo }", ".n { color: red }"]


@pytest.mark.asyncio()
async def test_inline_style_elements():
    view = await parse(PAGE)
    assert view.get_inline_style_elements() == [("font-family: 'Demo'", "!")]


@pytest.mark.asyncio()
async def test_query_text_concatenates_matches():
    view = await parse(PAGE)
    assert view.query_text(".title") == "Hello"
    assert view.query_text(".title, .sub") == "HelloWorld !"


@pytest.mark.asyncio()
async def test_query_text_strips_state_pseudo_classes():
    view = await parse(PAGE)
    assert view.query_text("h1:hover") == "Hello"
    assert view.query_text("a:visited") == ""


@pytest.mark.asyncio()
async def test_query_text_skips_unsupported_selectors():
    view = await parse(PAGE)
    assert view.query_text(".title::before, h1:bogus, .sub span") == "!"


@pytest.mark.asyncio()
async def test_select_raises_query_error():
    view = await parse(PAGE)
    with pytest.raises(SelectorQueryError):
        view.select("h1[")


@pytest.mark.asyncio()
async def test_non_rendered_text_is_excluded():
    view = await parse(PAGE)
    assert "never rendered" not in view.query_text("html")
    assert "hidden" not in view.query_text("html")
    assert "no script" not in view.query_text("html")


@pytest.mark.asyncio()
async def test_base_href_and_remote_document():
    html = '<base href="http://cdn.example.com/assets/"><link rel="stylesheet" href="x.css">'
    view = await parse(html, key="http://example.com/docs/page.html")
    assert view.base == "http://cdn.example.com/assets/"
    assert view.get_css_files() == ["http://cdn.example.com/assets/x.css"]

    view = await parse('<link rel="stylesheet" href="../x.css">', key="http://example.com/docs/page.html")
    assert view.base == "http://example.com/docs/"
    assert view.get_css_files() == ["http://example.com/x.css"]


@pytest.mark.asyncio()
async def test_elements_of_pseudo_element_hosts():
    view = await parse(PAGE)
    assert [tag.name for tag in view.elements(".sub span::before, h1:after", pseudo_host=True)] == [
        "span",
        "h1",
    ]
    assert len(view.elements("::after", pseudo_host=True)) == len(view.elements("*"))
    assert view.elements(".sub span::before") == []
