"""Report output directory and deterministic file naming."""

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

PAGE_REPORT_PREFIX = "accessibility-report-"
SUMMARY_FILENAME = "accessibility-summary-report.html"
JSON_FILENAME = "accessibility-results.json"
SCREENSHOTS_DIRNAME = "screenshots"


def page_slug(label):
    """Turn a page label into a single safe file-name component.

    Whitespace runs become hyphens, anything outside ``[a-z0-9._-]`` becomes
    a hyphen, and leading/trailing dots and hyphens are dropped, so a label
    can never name a subdirectory or a path outside the report root.
    """
    slug = re.sub(r"\s+", "-", str(label).strip()).lower()
    slug = re.sub(r"[^a-z0-9._-]", "-", slug)
    slug = re.sub(r"-{2,}", "-", slug).strip(".-")
    return slug or "page"


def unique_slugs(labels):
    """Slug each label in order, suffixing ``-2``, ``-3``... on repeats."""
    seen = set()
    slugs = []
    for label in labels:
        base = page_slug(label)
        slug = base
        n = 2
        while slug in seen:
            slug = f"{base}-{n}"
            n += 1
        if slug != base:
            logger.warning("Page label '%s' collides with an earlier page; using '%s'", label, slug)
        seen.add(slug)
        slugs.append(slug)
    return slugs


def page_report_filename(label):
    return f"{PAGE_REPORT_PREFIX}{page_slug(label)}.html"


def page_report_filenames(labels):
    """Distinct report file names for an ordered run of page labels."""
    return [f"{PAGE_REPORT_PREFIX}{slug}.html" for slug in unique_slugs(labels)]


def element_screenshot_name(label, rule_id, node_index):
    return f"{page_slug(label)}-{page_slug(rule_id)}-{node_index}.png"


def full_page_screenshot_name(label):
    return f"{page_slug(label)}-fullpage.png"


class ReportDirectory:
    """Handle on an initialized report directory.

    Created by ``prepare_report_dir``; everything that writes report or
    screenshot files gets its paths from here.
    """

    def __init__(self, root):
        self.root = Path(root)
        self.screenshots = self.root / SCREENSHOTS_DIRNAME

    def __repr__(self):
        return f"ReportDirectory({str(self.root)!r})"

    @property
    def summary_path(self):
        return self.root / SUMMARY_FILENAME

    @property
    def json_path(self):
        return self.root / JSON_FILENAME

    def page_report_path(self, label):
        return self.root / page_report_filename(label)

    def element_screenshot_path(self, label, rule_id, node_index):
        return self.screenshots / element_screenshot_name(label, rule_id, node_index)

    def full_page_screenshot_path(self, label):
        return self.screenshots / full_page_screenshot_name(label)

    def relative(self, path):
        """Path relative to the report root, with forward slashes, for use in HTML."""
        path = Path(path)
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()


def prepare_report_dir(root):
    """Create the report directory and its screenshots/ subdirectory."""
    directory = ReportDirectory(root)
    directory.root.mkdir(parents=True, exist_ok=True)
    directory.screenshots.mkdir(parents=True, exist_ok=True)
    return directory
