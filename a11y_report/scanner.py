"""Run axe-core against a live Playwright page and normalize the result."""

import logging
from pathlib import Path

from playwright.sync_api import Error as PlaywrightError

from .errors import ScanUnavailable
from .models import ScanResult

logger = logging.getLogger(__name__)

AXE_CDN_URL = "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.9.1/axe.min.js"

DEFAULT_RULE_TAGS = ["wcag2a", "wcag2aa", "wcag21a", "wcag21aa"]

DEFAULT_TIMEOUT_MS = 15000

# Runs in the page. Keeps only the fields the data model needs so the
# payload crossing the bridge stays small on large pages. page.evaluate has
# no deadline of its own, so axe.run is raced against timeoutMs.
AXE_RUN_SCRIPT = """async ({options, timeoutMs}) => {
    const deadline = new Promise((_, reject) => setTimeout(
        () => reject(new Error(`axe.run timed out after ${timeoutMs}ms`)), timeoutMs));
    const results = await Promise.race([axe.run(document, options), deadline]);
    const rule = r => ({
        id: r.id,
        impact: r.impact,
        description: r.description,
        help: r.help,
        helpUrl: r.helpUrl,
        tags: r.tags,
        nodes: r.nodes.map(n => ({
            target: n.target,
            html: n.html ? n.html.substring(0, 200) : '',
            failureSummary: n.failureSummary || ''
        }))
    });
    return {
        violations: results.violations.map(rule),
        passes: results.passes.map(r => ({id: r.id, description: r.description})),
        incomplete: results.incomplete.map(r => ({id: r.id, description: r.description})),
        url: window.location.href,
        timestamp: results.timestamp || new Date().toISOString()
    };
}"""


def build_axe_options(rule_tags, rules=None, iframes=True):
    """Build the options object passed to ``axe.run``."""
    options = {
        "runOnly": {"type": "tag", "values": list(rule_tags)},
        "resultTypes": ["violations", "passes", "incomplete"],
        "iframes": bool(iframes),
    }
    if rules:
        options["rules"] = dict(rules)
    return options


def inject_axe(page, script_url=AXE_CDN_URL, script_path=None, timeout_ms=DEFAULT_TIMEOUT_MS):
    """Inject axe-core into the page and wait until ``window.axe`` exists.

    A local ``script_path`` takes precedence over ``script_url``.
    """
    if script_path:
        page.add_script_tag(path=str(Path(script_path)))
    else:
        page.add_script_tag(url=script_url)
    page.wait_for_function("typeof window.axe !== 'undefined'", timeout=timeout_ms)


def scan(page, rule_tags=None, page_label="", url=None, rules=None, iframes=True,
         script_url=AXE_CDN_URL, script_path=None, timeout_ms=DEFAULT_TIMEOUT_MS):
    """Run an axe-core audit against the page's current state.

    Args:
        page: Playwright ``Page`` that is already navigated and settled.
        rule_tags: Guideline tags restricting which rules run.
        page_label: Step/page identifier stored on the result.
        url: URL to record. Defaults to the URL axe reports.
        rules: Optional per-rule overrides, e.g. ``{"color-contrast": {"enabled": True}}``.
        iframes: Whether axe should descend into iframes.
        script_url: axe-core script URL to inject.
        script_path: Local axe-core file, used instead of ``script_url``.
        timeout_ms: How long to wait for axe to become available, and then
            for ``axe.run`` to finish. Either deadline raises ScanUnavailable.

    Returns:
        ScanResult.

    Raises:
        ScanUnavailable: axe could not be injected or run on this page state.
    """
    tags = list(rule_tags) if rule_tags else list(DEFAULT_RULE_TAGS)
    options = build_axe_options(tags, rules=rules, iframes=iframes)

    try:
        inject_axe(page, script_url=script_url, script_path=script_path, timeout_ms=timeout_ms)
        raw = page.evaluate(AXE_RUN_SCRIPT, {"options": options, "timeoutMs": timeout_ms})
    except PlaywrightError as e:
        # TimeoutError is a subclass of Error
        raise ScanUnavailable(f"axe-core could not run on '{page_label}': {e}",
                              page_label=page_label) from e
    except OSError as e:
        raise ScanUnavailable(f"axe-core script could not be read: {e}",
                              page_label=page_label) from e

    if not isinstance(raw, dict):
        raise ScanUnavailable(
            f"axe-core returned {type(raw).__name__} instead of a result object on '{page_label}'",
            page_label=page_label,
        )

    result = ScanResult.from_axe(page_label, raw, url=url)
    logger.info("Scanned '%s': %d violation(s), %d pass(es), %d incomplete",
                page_label, len(result.violations), len(result.passes), len(result.incomplete))
    return result


def try_scan(page, rule_tags=None, page_label="", **kwargs):
    """Like ``scan`` but returns the ScanUnavailable instead of raising it."""
    try:
        return scan(page, rule_tags, page_label=page_label, **kwargs)
    except ScanUnavailable as e:
        logger.warning("Scan unavailable for '%s': %s", page_label, e)
        return e
