"""Render aggregated accessibility results as static HTML (and JSON) reports."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from html import escape
from pathlib import Path

from .errors import RenderFailure
from .models import SEVERITY_ORDER, Impact, normalize_impact
from .output import SUMMARY_FILENAME, page_report_filenames

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = "No screenshot available"

# Passed checks listed per page before collapsing into "... and N more"
PASSES_SHOWN = 10

STYLE = [
    "<style>",
    "body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; ",
    "  margin: 0; padding: 20px; background: #f5f5f5; color: #333; }",
    "h1 { text-align: center; margin-bottom: 10px; }",
    ".summary { text-align: center; margin-bottom: 30px; color: #666; }",
    ".stats { display: flex; gap: 10px; justify-content: center; flex-wrap: wrap; margin-bottom: 20px; }",
    ".stat { background: #fff; border-radius: 8px; padding: 12px 20px; text-align: center; ",
    "  box-shadow: 0 1px 3px rgba(0,0,0,0.1); min-width: 120px; }",
    ".stat strong { display: block; font-size: 24px; }",
    ".section { background: #fff; border-radius: 8px; padding: 20px; ",
    "  margin-bottom: 20px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); }",
    ".section h2 { margin-top: 0; }",
    ".violation { border-left: 4px solid #dc3545; }",
    ".violation.minor { border-left-color: #17a2b8; }",
    ".violation.moderate { border-left-color: #ffc107; }",
    ".violation.serious { border-left-color: #dc3545; }",
    ".violation.critical { border-left-color: #721c24; }",
    ".severity { display: inline-block; padding: 2px 10px; border-radius: 12px; ",
    "  font-size: 13px; font-weight: bold; }",
    ".severity.critical { background: #721c24; color: #fff; }",
    ".severity.serious { background: #f8d7da; color: #721c24; }",
    ".severity.moderate { background: #fff3cd; color: #856404; }",
    ".severity.minor { background: #d1ecf1; color: #0c5460; }",
    ".pass { color: #155724; }",
    ".nodes { display: flex; gap: 10px; margin-top: 15px; flex-wrap: wrap; }",
    ".nodes figure { flex: 1; min-width: 250px; margin: 0; background: #f8f9fa; ",
    "  border-radius: 4px; padding: 10px; }",
    ".nodes img, .fullpage img { max-width: 100%; height: auto; border: 1px solid #ddd; }",
    ".fullpage img { max-height: 400px; }",
    ".placeholder { color: #999; font-style: italic; }",
    "code { font-size: 12px; word-break: break-all; }",
    "table { width: 100%; border-collapse: collapse; margin: 20px 0; }",
    "th, td { text-align: left; padding: 8px 12px; border-bottom: 1px solid #ddd; }",
    "th { background: #f8f9fa; }",
    ".detail { color: #666; font-size: 13px; }",
    "</style>",
]


@dataclass
class WriteOutcome:
    """Files written by ``write_documents`` and the ones that failed."""

    written: list = field(default_factory=list)
    failures: list = field(default_factory=list)

    @property
    def all_failed(self):
        return bool(self.failures) and not self.written


def _head(title):
    return [
        "<!DOCTYPE html>",
        "<html lang='en'>",
        "<head>",
        "<meta charset='utf-8'>",
        "<meta name='viewport' content='width=device-width, initial-scale=1'>",
        f"<title>{escape(title)}</title>",
        *STYLE,
        "</head>",
        "<body>",
    ]


def _stat(value, label):
    return f"<div class='stat'><strong>{escape(str(value))}</strong>{escape(label)}</div>"


def _badge(impact):
    return f"<span class='severity {impact.value}'>{impact.value.upper()}</span>"


def _image(src, alt, placeholder_class="placeholder"):
    """An <img> for a non-empty path, otherwise the placeholder paragraph."""
    if not src:
        return f"<p class='{placeholder_class}'>{PLACEHOLDER_TEXT}</p>"
    return f"<a href='{escape(src)}'><img src='{escape(src)}' alt='{escape(alt)}'></a>"


def _impact_of(violation, page_label):
    """The violation's impact, defaulted (and logged) if it is malformed."""
    impact = getattr(violation, "impact", None)
    if isinstance(impact, Impact):
        return impact
    rule_id = getattr(violation, "rule_id", "")
    return normalize_impact(impact, f"rule '{rule_id}' on page '{page_label}'")


def _attr(obj, name, default=""):
    value = getattr(obj, name, default)
    return default if value is None else value


def render_page(result, report, screenshot_resolver=None, generated_at=""):
    """Render the detailed HTML document for one page's scan result."""
    label = _attr(result, "page_label")
    url = _attr(result, "url")
    violations = list(_attr(result, "violations", ()))
    passes = list(_attr(result, "passes", ()))
    incomplete = list(_attr(result, "incomplete", ()))

    html_parts = _head(f"Accessibility Report - {label}")
    html_parts.append(f"<h1>Accessibility Report - {escape(label)}</h1>")
    html_parts.append(f"<p class='summary'>URL: <a href='{escape(url)}'>{escape(url)}</a></p>")
    html_parts.append("<div class='stats'>")
    html_parts.append(_stat(len(violations), "Violations"))
    html_parts.append(_stat(len(passes), "Passes"))
    html_parts.append(_stat(len(incomplete), "Incomplete"))
    html_parts.append(_stat(_attr(result, "timestamp"), "Scan Time"))
    html_parts.append("</div>")

    html_parts.append("<div class='section fullpage'>")
    html_parts.append("<h2>Full Page Screenshot</h2>")
    html_parts.append(_image(report.screenshots.get(label), f"{label} screenshot"))
    html_parts.append("</div>")

    if violations:
        html_parts.append("<h2>Accessibility Violations</h2>")
    else:
        html_parts.append("<div class='section'><h2 class='pass'>No accessibility violations found</h2>"
                          "<p>This page meets the audited accessibility rules.</p></div>")

    for violation in violations:
        impact = _impact_of(violation, label)
        rule_id = _attr(violation, "rule_id")
        tags = [t for t in _attr(violation, "tags", ()) if "wcag" in t]
        nodes = list(_attr(violation, "affected_nodes", ()))
        help_url = _attr(violation, "help_url")

        html_parts.append(f"<div class='section violation {impact.value}'>")
        html_parts.append(f"<h2><code>{escape(rule_id)}</code> {_badge(impact)}</h2>")
        html_parts.append(f"<p><strong>Description:</strong> {escape(_attr(violation, 'description'))}</p>")
        html_parts.append(f"<p><strong>WCAG Guidelines:</strong> {escape(', '.join(tags))}</p>")
        html_parts.append(f"<p><strong>Help:</strong> {escape(_attr(violation, 'help_text'))}")
        if help_url:
            html_parts.append(f" (<a href='{escape(help_url)}'>rule documentation</a>)")
        html_parts.append("</p>")

        html_parts.append(f"<h3>Affected Elements ({len(nodes)})</h3>")
        html_parts.append("<div class='nodes'>")
        for node_index, node in enumerate(nodes):
            selector = _attr(node, "selector") or "N/A"
            snippet = _attr(node, "html_snippet") or "N/A"
            src = screenshot_resolver(label, rule_id, node_index) if screenshot_resolver else None
            html_parts.append("<figure>")
            html_parts.append(f"<p><strong>Element:</strong> <code>{escape(selector)}</code></p>")
            html_parts.append(f"<p><strong>HTML:</strong> <code>{escape(snippet)}</code></p>")
            summary = _attr(node, "failure_summary")
            if summary:
                html_parts.append(f"<p class='detail'>{escape(summary)}</p>")
            html_parts.append(_image(src, f"Violation {rule_id} element {node_index + 1}"))
            html_parts.append("</figure>")
        html_parts.append("</div>")
        html_parts.append("</div>")

    if incomplete:
        html_parts.append("<div class='section'>")
        html_parts.append("<h2>Needs Review (Incomplete)</h2>")
        html_parts.append("<table>")
        html_parts.append("<tr><th>Rule</th><th>Description</th></tr>")
        for check in incomplete:
            html_parts.append(f"<tr><td><code>{escape(_attr(check, 'rule_id'))}</code></td>"
                              f"<td>{escape(_attr(check, 'description'))}</td></tr>")
        html_parts.append("</table>")
        html_parts.append("</div>")

    if passes:
        html_parts.append("<div class='section'>")
        html_parts.append("<h2 class='pass'>Passed Checks</h2>")
        html_parts.append("<table>")
        html_parts.append("<tr><th>Rule</th><th>Description</th></tr>")
        for check in passes[:PASSES_SHOWN]:
            html_parts.append(f"<tr><td><code>{escape(_attr(check, 'rule_id'))}</code></td>"
                              f"<td>{escape(_attr(check, 'description'))}</td></tr>")
        html_parts.append("</table>")
        if len(passes) > PASSES_SHOWN:
            html_parts.append(f"<p class='detail'>... and {len(passes) - PASSES_SHOWN} "
                              f"more passed checks</p>")
        html_parts.append("</div>")

    html_parts.append(f"<p class='summary'>Generated: {escape(generated_at)}</p>")
    html_parts.extend(["</body>", "</html>"])
    return "\n".join(html_parts)


def _fallback_page(label, error, generated_at):
    html_parts = _head(f"Accessibility Report - {label}")
    html_parts.append(f"<h1>Accessibility Report - {escape(label)}</h1>")
    html_parts.append("<div class='section'>")
    html_parts.append("<p>The scan data for this page could not be rendered in full.</p>")
    html_parts.append(f"<p class='detail'>{escape(type(error).__name__)}: {escape(str(error))}</p>")
    html_parts.append("</div>")
    html_parts.append(f"<p class='summary'>Generated: {escape(generated_at)}</p>")
    html_parts.extend(["</body>", "</html>"])
    return "\n".join(html_parts)


def render_summary(report, generated_at=""):
    """Render the cross-page summary document."""
    html_parts = _head("Accessibility Summary Report")
    html_parts.append("<h1>Accessibility Summary Report</h1>")
    html_parts.append(
        f"<p class='summary'>{report.pages_scanned} pages scanned: "
        f"{report.total_instances} violations across {len(report.rules)} rules, "
        f"{report.total_nodes} affected elements "
        f"(pass rate {report.pass_rate * 100:.1f}%)</p>"
    )

    html_parts.append("<div class='stats'>")
    html_parts.append(_stat(report.pages_scanned, "Pages Scanned"))
    html_parts.append(_stat(report.total_instances, "Total Violations"))
    for impact in SEVERITY_ORDER:
        html_parts.append(_stat(report.by_impact.get(impact.value, 0),
                                f"{impact.value.capitalize()} Issues"))
    html_parts.append(_stat(f"{report.pass_rate * 100:.1f}%", "Pass Rate"))
    html_parts.append("</div>")

    html_parts.append("<div class='section'>")
    html_parts.append("<h2>Page-by-Page Results</h2>")
    html_parts.append("<table>")
    html_parts.append("<tr><th>Page</th><th>URL</th><th>Violations</th><th>Passes</th>"
                      "<th>Incomplete</th><th>Report</th></tr>")
    filenames = page_report_filenames([page.label for page in report.pages])
    for page, filename in zip(report.pages, filenames):
        html_parts.append(
            f"<tr><td>{escape(page.label)}</td>"
            f"<td><a href='{escape(page.url)}'>{escape(page.url)}</a></td>"
            f"<td>{page.violation_count}</td><td>{page.pass_count}</td>"
            f"<td>{page.incomplete_count}</td>"
            f"<td><a href='{escape(filename)}'>View Detailed Report</a></td></tr>"
        )
    html_parts.append("</table>")
    html_parts.append("</div>")

    if report.rules:
        html_parts.append("<div class='section'>")
        html_parts.append("<h2>All Violations Summary</h2>")
        html_parts.append("<table>")
        html_parts.append("<tr><th>Violation ID</th><th>Impact</th><th>Description</th>"
                          "<th>Pages Affected</th><th>Instances</th><th>WCAG Guidelines</th></tr>")
        for rule in report.sorted_rules():
            html_parts.append(
                f"<tr><td><code>{escape(rule.rule_id)}</code></td>"
                f"<td>{_badge(rule.impact)}</td>"
                f"<td>{escape(rule.description)}</td>"
                f"<td>{escape(', '.join(rule.pages))}</td>"
                f"<td>{rule.instance_count}</td>"
                f"<td>{escape(', '.join(rule.wcag_tags))}</td></tr>"
            )
        html_parts.append("</table>")
        html_parts.append("</div>")
    else:
        html_parts.append("<div class='section'><h2 class='pass'>No accessibility violations found</h2></div>")

    html_parts.append(f"<p class='summary'>Generated: {escape(generated_at)} "
                      f"- axe-core with Playwright</p>")
    html_parts.extend(["</body>", "</html>"])
    return "\n".join(html_parts)


def render(report, per_page_results, screenshot_resolver=None, generated_at=None):
    """Render one document per page plus the cross-page summary.

    Rendering is best-effort: a page whose data cannot be rendered gets a
    minimal fallback document instead of aborting the others.

    Args:
        report: AggregatedReport built from ``per_page_results``.
        per_page_results: Ordered sequence of ScanResult.
        screenshot_resolver: Callable ``(page_label, rule_id, node_index)``
            returning a relative screenshot path or None.
        generated_at: Timestamp string embedded in every document. Defaults
            to the current local time; pass a fixed value for reproducible output.

    Returns:
        List of (filename, content) tuples, page documents first, summary last.
        Pages whose labels slug to the same name get ``-2``, ``-3``... file
        names so no page's report overwrites another's.
    """
    if generated_at is None:
        generated_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    labels = [_attr(result, "page_label") or "page" for result in per_page_results]
    documents = []
    for result, label, filename in zip(per_page_results, labels, page_report_filenames(labels)):
        try:
            content = render_page(result, report, screenshot_resolver, generated_at)
        except (AttributeError, TypeError, ValueError, KeyError) as e:
            logger.exception("Could not render report for '%s'; writing fallback", label)
            content = _fallback_page(label, e, generated_at)
        documents.append((filename, content))

    documents.append((SUMMARY_FILENAME, render_summary(report, generated_at)))
    return documents


def write_documents(directory, documents):
    """Write rendered documents into the report directory.

    A failed write is recorded as a RenderFailure and the remaining
    documents are still written.
    """
    outcome = WriteOutcome()
    for filename, content in documents:
        path = directory.root / filename
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error("Could not write %s: %s", path, e)
            outcome.failures.append(RenderFailure(f"Could not write {path}: {e}", filename=filename))
            continue
        outcome.written.append(path)
    return outcome


def build_json_report(report, per_page_results, generated_at=""):
    """Build the JSON-serializable form of a run: summary plus raw page results."""
    return {
        "generated_at": generated_at,
        "summary": report.to_dict(),
        "results": [result.to_dict() for result in per_page_results],
    }


def write_json_report(path, data):
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        raise RenderFailure(f"Could not write {path}: {e}", filename=path.name) from e
    return path
