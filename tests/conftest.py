"""Pytest configuration and shared fixtures for the a11y-page-audit test suite."""

import struct
import zlib

import pytest

from a11y_report.models import CheckOutcome, Impact, NodeRef, ScanResult, Violation


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that require external services (Playwright, network)"
    )


# ---------------------------------------------------------------------------
# Raw axe-core output fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def raw_axe_result():
    """Trimmed axe.run() output: 2 violations, 1 pass, 1 incomplete."""
    return {
        "url": "https://example.test/login",
        "timestamp": "2026-10-01T09:30:00.000Z",
        "violations": [
            {
                "id": "image-alt",
                "impact": "critical",
                "description": "Ensures <img> elements have alternate text",
                "help": "Images must have alternate text",
                "helpUrl": "https://dequeuniversity.com/rules/axe/4.9/image-alt",
                "tags": ["cat.text-alternatives", "wcag2a", "wcag111", "section508"],
                "nodes": [
                    {
                        "target": ["img.logo"],
                        "html": "<img class=\"logo\" src=\"/logo.png\">",
                        "failureSummary": "Fix any of the following:\n  Element does not have an alt attribute",
                    },
                ],
            },
            {
                "id": "color-contrast",
                "impact": "serious",
                "description": "Ensures the contrast between foreground and background colors meets WCAG 2 AA",
                "help": "Elements must meet minimum color contrast ratio thresholds",
                "helpUrl": "https://dequeuniversity.com/rules/axe/4.9/color-contrast",
                "tags": ["cat.color", "wcag2aa", "wcag143"],
                "nodes": [
                    {"target": ["#submit"], "html": "<button id=\"submit\">Sign in</button>"},
                    {"target": [".footer > a"], "html": "<a href=\"/help\">Help</a>"},
                ],
            },
        ],
        "passes": [
            {"id": "html-has-lang", "description": "Ensures every HTML document has a lang attribute"},
        ],
        "incomplete": [
            {"id": "aria-hidden-focus", "description": "Ensures aria-hidden elements are not focusable"},
        ],
    }


# ---------------------------------------------------------------------------
# Normalized model fixtures
# ---------------------------------------------------------------------------

def make_violation(rule_id, impact=Impact.SERIOUS, nodes=1, tags=("wcag2a",)):
    """Build a Violation with ``nodes`` affected elements."""
    return Violation(
        rule_id=rule_id,
        impact=impact,
        description=f"{rule_id} description",
        help_text=f"{rule_id} help",
        tags=tuple(tags),
        affected_nodes=tuple(
            NodeRef(selector=f"#{rule_id}-{i}", html_snippet=f"<div id=\"{rule_id}-{i}\"></div>")
            for i in range(nodes)
        ),
    )


def make_result(label, violations=(), passes=(), incomplete=(), url=None):
    return ScanResult(
        page_label=label,
        url=url or f"https://example.test/{label.lower().replace(' ', '-')}",
        timestamp="2026-10-01T09:30:00+00:00",
        violations=tuple(violations),
        passes=tuple(CheckOutcome(rule_id=r, description=f"{r} passes") for r in passes),
        incomplete=tuple(CheckOutcome(rule_id=r, description=f"{r} needs review") for r in incomplete),
    )


@pytest.fixture
def login_result():
    """The login page: image-alt (critical, 1 node), color-contrast (serious, 2 nodes)."""
    return make_result(
        "login",
        violations=[
            make_violation("image-alt", Impact.CRITICAL, nodes=1),
            make_violation("color-contrast", Impact.SERIOUS, nodes=2, tags=("wcag2aa", "wcag143")),
        ],
        passes=["html-has-lang"],
    )


@pytest.fixture
def home_result():
    """The home page: image-alt again plus a moderate region violation."""
    return make_result(
        "home",
        violations=[
            make_violation("image-alt", Impact.CRITICAL, nodes=3),
            make_violation("region", Impact.MODERATE, nodes=1),
        ],
        passes=["html-has-lang", "document-title"],
        incomplete=["aria-hidden-focus"],
    )


@pytest.fixture
def clean_result():
    return make_result("Forgot Password", passes=["html-has-lang", "document-title", "bypass"])


# ---------------------------------------------------------------------------
# Fake Playwright objects
# ---------------------------------------------------------------------------

class FakeElement:
    def __init__(self, visible=True, error=None):
        self.visible = visible
        self.error = error
        self.saved = []

    def is_visible(self):
        return self.visible

    def screenshot(self, path=None, timeout=None):
        if self.error:
            raise self.error
        with open(path, "wb") as f:
            f.write(_create_solid_png(4, 4, 255, 0, 0))
        self.saved.append(path)


class FakeLocator:
    def __init__(self, element):
        self.first = element


class FakePage:
    """Stands in for a Playwright Page in scanner and screenshot tests.

    ``fail_on`` names the method ('inject', 'wait', 'evaluate', 'screenshot')
    that should raise ``error``.
    """

    def __init__(self, result=None, error=None, fail_on=None, elements=None):
        self.result = result
        self.error = error
        self.fail_on = fail_on
        self.elements = elements or {}
        self.script_tags = []
        self.evaluated = []

    def add_script_tag(self, url=None, path=None):
        if self.fail_on == "inject":
            raise self.error
        self.script_tags.append(url or path)

    def wait_for_function(self, expression, timeout=None):
        if self.fail_on == "wait":
            raise self.error

    def evaluate(self, script, arg=None):
        if self.fail_on == "evaluate":
            raise self.error
        self.evaluated.append(arg)
        return self.result

    def screenshot(self, path=None, full_page=False):
        if self.fail_on == "screenshot":
            raise self.error
        with open(path, "wb") as f:
            f.write(_create_solid_png(8, 8, 0, 0, 255))

    def locator(self, selector):
        return FakeLocator(self.elements.get(selector, FakeElement()))


@pytest.fixture
def fake_page_factory():
    return FakePage


# ---------------------------------------------------------------------------
# Sample image fixtures
# ---------------------------------------------------------------------------

def _create_solid_png(width, height, r, g, b):
    """Create a minimal valid PNG file as bytes with a solid color.

    Uses raw zlib-compressed IDAT chunks -- no Pillow dependency needed
    for fixture creation itself.
    """
    def _chunk(chunk_type, data):
        raw = chunk_type + data
        return struct.pack(">I", len(data)) + raw + struct.pack(">I", zlib.crc32(raw) & 0xFFFFFFFF)

    # PNG signature
    signature = b'\x89PNG\r\n\x1a\n'

    # IHDR
    ihdr_data = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)  # 8-bit RGB
    ihdr = _chunk(b'IHDR', ihdr_data)

    # IDAT -- raw image data: each row starts with filter byte 0 (None)
    raw_rows = b''
    for _ in range(height):
        raw_rows += b'\x00' + bytes([r, g, b]) * width
    idat = _chunk(b'IDAT', zlib.compress(raw_rows))

    # IEND
    iend = _chunk(b'IEND', b'')

    return signature + ihdr + idat + iend


@pytest.fixture
def png_bytes():
    """A small solid red PNG as bytes."""
    return _create_solid_png(10, 10, 255, 0, 0)
