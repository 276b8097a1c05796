"""Unit tests for a11y_report.output and a11y_report.screenshots."""

import pytest
from playwright.sync_api import Error as PlaywrightError

from conftest import FakeElement, make_result, make_violation

from a11y_report.errors import ScreenshotUnavailable
from a11y_report.models import Impact
from a11y_report.output import (
    SUMMARY_FILENAME,
    page_report_filename,
    page_slug,
    prepare_report_dir,
    unique_slugs,
)
from a11y_report.screenshots import (
    DirectoryResolver,
    ScreenshotCapture,
    ScreenshotIndex,
    is_image,
)


# ---------------------------------------------------------------------------
# Report directory and naming
# ---------------------------------------------------------------------------

class TestNaming:
    """Deterministic file names derived from page labels."""

    def test_slug_lowercases_and_hyphenates(self):
        assert page_slug("Forgot  Password\tPage") == "forgot-password-page"

    @pytest.mark.parametrize("label,expected", [
        ("Account / Settings", "account-settings"),
        ("../../escape", "escape"),
        ("a\\b", "a-b"),
        (".hidden", "hidden"),
        ("???", "page"),
    ])
    def test_slug_is_a_single_file_name(self, label, expected):
        assert page_slug(label) == expected

    def test_unique_slugs_suffix_repeats(self):
        assert unique_slugs(["Home", "home", "Login", "HOME"]) == ["home", "home-2", "login", "home-3"]

    def test_screenshot_paths_stay_in_screenshots_dir(self, tmp_path):
        directory = prepare_report_dir(tmp_path)
        full = directory.full_page_screenshot_path("../../Account / Settings")
        element = directory.element_screenshot_path("../x", "image-alt", 0)
        assert full.parent == directory.screenshots
        assert element.parent == directory.screenshots
        assert full.name == "account-settings-fullpage.png"

    def test_page_report_filename(self):
        assert page_report_filename("Home Page") == "accessibility-report-home-page.html"

    def test_prepare_creates_directories(self, tmp_path):
        directory = prepare_report_dir(tmp_path / "build" / "reports")
        assert directory.root.is_dir()
        assert directory.screenshots.is_dir()
        assert directory.summary_path.name == SUMMARY_FILENAME

    def test_prepare_is_repeatable(self, tmp_path):
        prepare_report_dir(tmp_path / "reports")
        directory = prepare_report_dir(tmp_path / "reports")
        assert directory.root.is_dir()

    def test_screenshot_paths(self, tmp_path):
        directory = prepare_report_dir(tmp_path)
        element = directory.element_screenshot_path("Login", "image-alt", 0)
        assert directory.relative(element) == "screenshots/login-image-alt-0.png"
        full = directory.full_page_screenshot_path("Login")
        assert directory.relative(full) == "screenshots/login-fullpage.png"


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------

class TestScreenshotCapture:
    """Capture returns a path or a ScreenshotUnavailable value, never raises."""

    def test_full_page_written(self, tmp_path, fake_page_factory):
        directory = prepare_report_dir(tmp_path)
        path = ScreenshotCapture(fake_page_factory(), directory).full_page("home")
        assert path == directory.full_page_screenshot_path("home")
        assert is_image(path)

    def test_full_page_failure_returned(self, tmp_path, fake_page_factory):
        page = fake_page_factory(error=PlaywrightError("Target closed"), fail_on="screenshot")
        outcome = ScreenshotCapture(page, prepare_report_dir(tmp_path)).full_page("home")
        assert isinstance(outcome, ScreenshotUnavailable)
        assert outcome.name == "home-fullpage.png"

    def test_invisible_element_unavailable(self, tmp_path, fake_page_factory):
        page = fake_page_factory(elements={"#hidden": FakeElement(visible=False)})
        outcome = ScreenshotCapture(page, prepare_report_dir(tmp_path)).element(
            "#hidden", "home", "region", 0)
        assert isinstance(outcome, ScreenshotUnavailable)

    def test_empty_selector_unavailable(self, tmp_path, fake_page_factory):
        outcome = ScreenshotCapture(fake_page_factory(), prepare_report_dir(tmp_path)).element(
            "", "home", "region", 0)
        assert isinstance(outcome, ScreenshotUnavailable)

    def test_element_error_unavailable(self, tmp_path, fake_page_factory):
        page = fake_page_factory(elements={"#x": FakeElement(error=PlaywrightError("detached"))})
        outcome = ScreenshotCapture(page, prepare_report_dir(tmp_path)).element(
            "#x", "home", "region", 0)
        assert isinstance(outcome, ScreenshotUnavailable)

    def test_violations_indexes_successful_captures(self, tmp_path, fake_page_factory):
        result = make_result("login", violations=[
            make_violation("image-alt", Impact.CRITICAL, nodes=1),
            make_violation("color-contrast", Impact.SERIOUS, nodes=2),
        ])
        page = fake_page_factory(elements={"#color-contrast-1": FakeElement(visible=False)})
        index = ScreenshotCapture(page, prepare_report_dir(tmp_path)).violations(result)
        assert len(index) == 2
        assert index("login", "image-alt", 0) == "screenshots/login-image-alt-0.png"
        assert index("login", "color-contrast", 0) == "screenshots/login-color-contrast-0.png"
        assert index("login", "color-contrast", 1) is None


# ---------------------------------------------------------------------------
# Resolvers
# ---------------------------------------------------------------------------

class TestScreenshotIndex:
    def test_lookup(self):
        index = ScreenshotIndex()
        index.add("home", "region", 2, "screenshots/home-region-2.png")
        assert index("home", "region", 2) == "screenshots/home-region-2.png"
        assert index("home", "region", 1) is None

    def test_update_merges(self):
        first = ScreenshotIndex({("a", "r", 0): "a.png"})
        first.update(ScreenshotIndex({("b", "r", 0): "b.png"}))
        assert len(first) == 2


class TestDirectoryResolver:
    """The resolver only returns paths to real, readable images."""

    def test_existing_image_resolved(self, tmp_path, png_bytes):
        directory = prepare_report_dir(tmp_path)
        directory.element_screenshot_path("home", "region", 0).write_bytes(png_bytes)
        assert DirectoryResolver(directory)("home", "region", 0) == "screenshots/home-region-0.png"

    def test_missing_file_not_resolved(self, tmp_path):
        assert DirectoryResolver(prepare_report_dir(tmp_path))("home", "region", 0) is None

    def test_corrupt_file_not_resolved(self, tmp_path):
        directory = prepare_report_dir(tmp_path)
        directory.element_screenshot_path("home", "region", 0).write_bytes(b"")
        assert DirectoryResolver(directory)("home", "region", 0) is None

    def test_full_page(self, tmp_path, png_bytes):
        directory = prepare_report_dir(tmp_path)
        directory.full_page_screenshot_path("Home Page").write_bytes(png_bytes)
        assert DirectoryResolver(directory).full_page("Home Page") == "screenshots/home-page-fullpage.png"
