"""Screenshot capture and lookup for accessibility reports.

Capture calls return either the written path or a ScreenshotUnavailable
value; a failed capture never stops the run. Resolvers answer "is there a
screenshot for this page / rule / node" for the report builder.
"""

import logging
from pathlib import Path

from PIL import Image
from playwright.sync_api import Error as PlaywrightError

from .errors import ScreenshotUnavailable

logger = logging.getLogger(__name__)

# Visibility probe for element screenshots
VISIBLE_TIMEOUT_MS = 2000


class ScreenshotCapture:
    """Take full-page and element screenshots of one Playwright page."""

    def __init__(self, page, directory, timeout_ms=VISIBLE_TIMEOUT_MS):
        self.page = page
        self.directory = directory
        self.timeout_ms = timeout_ms

    def full_page(self, label):
        """Capture the whole page. Returns a Path or ScreenshotUnavailable."""
        path = self.directory.full_page_screenshot_path(label)
        try:
            self.page.screenshot(path=str(path), full_page=True)
        except PlaywrightError as e:
            logger.warning("Full-page screenshot failed for '%s': %s", label, e)
            return ScreenshotUnavailable(str(e), name=path.name)
        logger.info("Screenshot saved: %s", path)
        return path

    def element(self, selector, label, rule_id, node_index):
        """Capture the first element matching ``selector``.

        Returns a Path, or ScreenshotUnavailable when the selector is empty,
        the element is not visible, or Playwright fails.
        """
        path = self.directory.element_screenshot_path(label, rule_id, node_index)
        if not selector:
            return ScreenshotUnavailable("no selector for node", name=path.name)
        try:
            element = self.page.locator(selector).first
            if not element.is_visible():
                return ScreenshotUnavailable(f"element not visible: {selector}", name=path.name)
            element.screenshot(path=str(path), timeout=self.timeout_ms)
        except PlaywrightError as e:
            logger.warning("Element screenshot failed for %s: %s", path.name, e)
            return ScreenshotUnavailable(str(e), name=path.name)
        return path

    def violations(self, scan_result):
        """Capture every affected node of every violation in a scan.

        Returns a ScreenshotIndex of the captures that succeeded.
        """
        index = ScreenshotIndex()
        for violation in scan_result.violations:
            for node_index, node in enumerate(violation.affected_nodes):
                outcome = self.element(node.selector, scan_result.page_label,
                                       violation.rule_id, node_index)
                if isinstance(outcome, ScreenshotUnavailable):
                    continue
                index.add(scan_result.page_label, violation.rule_id, node_index,
                          self.directory.relative(outcome))
        return index


class ScreenshotIndex:
    """In-memory resolver: (page label, rule id, node index) -> relative path."""

    def __init__(self, entries=None):
        self._paths = dict(entries or {})

    def add(self, page_label, rule_id, node_index, path):
        self._paths[(page_label, rule_id, node_index)] = str(path)

    def update(self, other):
        self._paths.update(other._paths)

    def __len__(self):
        return len(self._paths)

    def __call__(self, page_label, rule_id, node_index):
        return self._paths.get((page_label, rule_id, node_index))


def is_image(path):
    """True if ``path`` exists and Pillow can verify it as an image."""
    path = Path(path)
    if not path.is_file():
        return False
    try:
        with Image.open(path) as img:
            img.verify()
    except (OSError, SyntaxError, ValueError) as e:
        logger.warning("Ignoring unreadable screenshot %s: %s", path, e)
        return False
    return True


class DirectoryResolver:
    """Resolver that looks for screenshots already on disk.

    A path is returned only when the expected file exists and is a valid
    image, so a zero-byte or truncated capture renders as a placeholder.
    """

    def __init__(self, directory):
        self.directory = directory

    def __call__(self, page_label, rule_id, node_index):
        path = self.directory.element_screenshot_path(page_label, rule_id, node_index)
        if is_image(path):
            return self.directory.relative(path)
        return None

    def full_page(self, page_label):
        path = self.directory.full_page_screenshot_path(page_label)
        if is_image(path):
            return self.directory.relative(path)
        return None
