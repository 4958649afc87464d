# File: tests/test_paths.py
import re

import pytest

from font_spider.resource.paths import (
    PathPipeline,
    dirname,
    ignore_filter,
    is_remote,
    map_filter,
    normalize,
    resolve,
)


@pytest.mark.parametrize(
    "key,expected",
    [
        ("http://example.com/a.css", True),
        ("HTTPS://example.com", True),
        ("/var/www/a.css", False),
        ("ftp://example.com/a.css", False),
        ("//cdn.example.com/a.css", False),
    ],
)
def test_is_remote(key, expected):
    assert is_remote(key) is expected


@pytest.mark.parametrize(
    "base,ref,expected",
    [
        ("/site/css", "../fonts/a.woff", "/site/fonts/a.woff"),
        ("/site/css", "/abs/a.woff", "/abs/a.woff"),
        ("/site", "http://cdn.example.com/a.css", "http://cdn.example.com/a.css"),
        ("http://example.com/css/", "../fonts/a.woff", "http://example.com/fonts/a.woff"),
        ("http://example.com/css/", "//cdn.example.com/a.css", "http://cdn.example.com/a.css"),
        ("/site", "//cdn.example.com/a.css", "https://cdn.example.com/a.css"),
        ("/site", "file:///srv/my%20fonts/a.ttf", "/srv/my fonts/a.ttf"),
    ],
)
def test_resolve(base, ref, expected):
    assert resolve(base, ref) == expected


def test_normalize_strips_query_and_fragment():
    assert normalize("/site/fonts/a.eot?#iefix") == "/site/fonts/a.eot"
    assert normalize("/site/./fonts/../fonts/my%20font.ttf") == "/site/fonts/my font.ttf"
    assert normalize("http://example.com/a.svg?v=2#font") == "http://example.com/a.svg?v=2"


def test_dirname():
    assert dirname("/site/css/a.css") == "/site/css"
    assert dirname("http://example.com/css/a.css") == "http://example.com/css/"


def test_ignore_filter_globs():
    is_ignored = ignore_filter(["*.eot", "vendor/icons.css"])
    assert is_ignored("/site/fonts/a.eot")
    assert is_ignored("http://example.com/vendor/icons.css")
    assert not is_ignored("/site/fonts/a.woff")
    assert not is_ignored("/site/myvendor/icons.css")


def test_ignore_filter_regex():
    is_ignored = ignore_filter([re.compile(r"\.svg")])
    assert is_ignored("/site/fonts/a.svg")
    assert not is_ignored("/site/fonts/a.ttf")


def test_map_filter_applies_rules_in_order():
    rewrite = map_filter([(r"^http://cdn\.example\.com", "/local/cdn"), ("cdn/", "mirror/")])
    assert rewrite("http://cdn.example.com/a.woff") == "/local/mirror/a.woff"
    assert rewrite("/other/a.woff") == "/other/a.woff"


def test_pipeline_ignore_wins_over_map():
    pipeline = PathPipeline(ignore=["x.css"], rules=[("x\\.css", "y.css")])
    assert pipeline("/site", "x.css") is None
    assert pipeline("/site", "z.css") == "/site/z.css"


def test_pipeline_maps_and_normalizes():
    pipeline = PathPipeline(rules=[("^https://fonts\\.example\\.com", "/site/fonts")])
    assert pipeline("/site", "https://fonts.example.com/a.woff2#x") == "/site/fonts/a.woff2"


@pytest.mark.parametrize("ref", ["", "  ", "data:font/woff2;base64,AAAA", "javascript:void(0)"])
def test_pipeline_skips_non_resources(ref):
    assert PathPipeline()("/site", ref) is None
