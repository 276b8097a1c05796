#!/usr/bin/env python3
"""Accessibility audit across a sequence of pages.

Visits each configured page in order with Playwright, runs axe-core against
it, captures full-page and per-violation element screenshots, then writes a
detailed HTML report per page plus one cross-page summary report.
Violations are reported as data; they do not fail the run unless
--fail-on-violations is given.
"""

import argparse
import json
import logging
import sys
import time
from datetime import datetime

try:
    from playwright.sync_api import Error as PlaywrightError
    from playwright.sync_api import sync_playwright
except ImportError:
    print("Error: playwright is required. Install with: pip install playwright && playwright install")
    sys.exit(1)

from a11y_report import (
    SEVERITY_ORDER,
    ConfigError,
    RenderFailure,
    ScanResult,
    ScreenshotUnavailable,
    aggregate,
    build_json_report,
    prepare_report_dir,
    render,
    try_scan,
    write_documents,
    write_json_report,
)
from a11y_report.config import PageTarget, distinct_pages, load_config
from a11y_report.screenshots import DirectoryResolver, ScreenshotCapture, ScreenshotIndex


def pages_from_args(urls, labels):
    """Pair --url values with --label values; missing labels become page-N."""
    labels = labels or []
    if len(labels) > len(urls):
        raise ConfigError("More --label values than --url values")
    pages = []
    for i, url in enumerate(urls):
        label = labels[i] if i < len(labels) else f"page-{i + 1}"
        pages.append(PageTarget(label=label, url=url))
    return tuple(pages)


def build_config(args):
    """Load the JSON config (if any) and apply command-line overrides."""
    config = load_config(args.config)
    overrides = {
        "output_dir": args.output,
        "rule_tags": tuple(t.strip() for t in args.tags.split(",") if t.strip()) if args.tags else None,
        "headless": False if args.headed else None,
        "screenshots": False if args.no_screenshots else None,
    }
    if args.url:
        overrides["pages"] = pages_from_args(args.url, args.label)
    config = config.with_overrides(**overrides)
    if not config.pages:
        raise ConfigError("No pages to audit. Pass --url or a config file with 'pages'.")
    return config.with_overrides(pages=distinct_pages(config.pages))


def scan_with_retry(page, target, config):
    """Scan the current page, retrying after ScanUnavailable.

    Returns a ScanResult, or None when every attempt failed.
    """
    attempts = 1 + config.retry_attempts
    for attempt in range(1, attempts + 1):
        outcome = try_scan(
            page,
            config.rule_tags,
            page_label=target.label,
            url=target.url,
            rules=config.axe_rules,
            iframes=config.iframes,
            script_url=config.axe_script_url,
            script_path=config.axe_script_path,
            timeout_ms=config.timeout_ms,
        )
        if isinstance(outcome, ScanResult):
            return outcome
        print(f"  Scan unavailable (attempt {attempt}/{attempts}): {outcome}")
        if attempt < attempts:
            time.sleep(config.retry_delay_ms / 1000)
    return None


def audit_pages(config, directory):
    """Visit every page in order and scan it.

    Returns (results, full-page screenshots by label, element screenshot index).
    """
    results = []
    full_page_shots = {}
    element_shots = ScreenshotIndex()

    with sync_playwright() as p:
        browser = p.chromium.launch(headless=config.headless)
        page = browser.new_page(viewport=config.viewport)
        page.set_default_timeout(config.timeout_ms)
        try:
            for target in config.pages:
                print(f"Auditing {target.label}: {target.url}")
                try:
                    page.goto(target.url, wait_until="networkidle", timeout=config.timeout_ms)
                    page.wait_for_timeout(target.wait_ms if target.wait_ms is not None else config.settle_ms)
                except PlaywrightError as e:
                    print(f"  Error loading {target.url}: {e}")
                    continue

                result = scan_with_retry(page, target, config)
                if result is None:
                    print(f"  Skipped {target.label}: axe-core could not run")
                    continue

                print(f"  Found {len(result.violations)} violation(s), "
                      f"{len(result.passes)} pass(es), {len(result.incomplete)} incomplete")
                results.append(result)

                if config.screenshots:
                    capture = ScreenshotCapture(page, directory)
                    shot = capture.full_page(target.label)
                    if not isinstance(shot, ScreenshotUnavailable):
                        full_page_shots[target.label] = directory.relative(shot)
                    if result.violations:
                        captured = capture.violations(result)
                        element_shots.update(captured)
                        print(f"  Captured {len(captured)} element screenshot(s)")
        finally:
            page.close()
            browser.close()

    return results, full_page_shots, element_shots


def load_results(json_path):
    """Load ScanResults from a JSON report written by a previous run."""
    with open(json_path, encoding="utf-8") as f:
        data = json.load(f)
    return [ScanResult.from_dict(item) for item in data.get("results", [])]


def print_summary(report):
    """Print a formatted summary table to stdout."""
    print("\n--- Accessibility Summary ---\n")
    print(f"{'Severity':<12} {'Violations':>10}")
    print("-" * 24)
    for impact in SEVERITY_ORDER:
        print(f"{impact.value:<12} {report.by_impact.get(impact.value, 0):>10}")
    print("-" * 24)
    print(f"{'TOTAL':<12} {report.total_instances:>10}")
    print(f"\nPages scanned: {report.pages_scanned}")
    print(f"Unique rules violated: {len(report.rules)}")
    print(f"Pass rate: {report.pass_rate * 100:.1f}%")

    if report.rules:
        print("\nViolations by rule:")
        for rule in report.sorted_rules():
            print(f"  [{rule.impact.value.upper()}] {rule.rule_id}: {rule.description}")
            print(f"    Pages: {', '.join(rule.pages)}")
    else:
        print("\nNo accessibility violations found.")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description=(
            "Run axe-core against a sequence of pages and write per-page and "
            "cross-page HTML accessibility reports with screenshots."
        )
    )
    parser.add_argument(
        "--config",
        help="JSON config file (pages, rule_tags, output_dir, axe options, retry policy)"
    )
    parser.add_argument(
        "--url", action="append",
        help="Page URL to audit (repeatable; overrides 'pages' from the config)"
    )
    parser.add_argument(
        "--label", action="append",
        help="Report label for the matching --url (repeatable)"
    )
    parser.add_argument(
        "--output",
        help="Report output directory (default: build/reports)"
    )
    parser.add_argument(
        "--tags",
        help="Comma-separated axe rule tags (default: wcag2a,wcag2aa,wcag21a,wcag21aa)"
    )
    parser.add_argument(
        "--headed", action="store_true",
        help="Run the browser with a visible window"
    )
    parser.add_argument(
        "--no-screenshots", action="store_true",
        help="Skip full-page and element screenshots"
    )
    parser.add_argument(
        "--json", action="store_true",
        help="Also write the raw results and summary as JSON"
    )
    parser.add_argument(
        "--rerender",
        help="Re-render reports from a JSON results file instead of scanning"
    )
    parser.add_argument(
        "--fail-on-violations", action="store_true",
        help="Exit with status 1 when any violation is found"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    try:
        if args.rerender:
            config = load_config(args.config).with_overrides(output_dir=args.output)
        else:
            config = build_config(args)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(2)

    directory = prepare_report_dir(config.output_dir)
    generated_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    if args.rerender:
        try:
            results = load_results(args.rerender)
        except (OSError, ValueError, KeyError, TypeError) as e:
            print(f"Error reading {args.rerender}: {e}")
            sys.exit(1)
        resolver = DirectoryResolver(directory)
        full_page_shots = {}
        for result in results:
            shot = resolver.full_page(result.page_label)
            if shot:
                full_page_shots[result.page_label] = shot
        print(f"Re-rendering {len(results)} page(s) from {args.rerender}")
    else:
        print(f"Pages: {len(config.pages)}")
        print(f"Rule tags: {', '.join(config.rule_tags)}")
        print(f"Reports: {directory.root}")
        print()
        results, full_page_shots, resolver = audit_pages(config, directory)

    if not results:
        print("Error: no page could be scanned.")
        sys.exit(1)

    report = aggregate(results, screenshots=full_page_shots)
    documents = render(report, results, resolver, generated_at=generated_at)
    outcome = write_documents(directory, documents)

    if args.json:
        try:
            json_path = write_json_report(
                directory.json_path, build_json_report(report, results, generated_at)
            )
            print(f"JSON results saved to: {json_path}")
        except RenderFailure as e:
            print(f"Warning: {e}")

    print_summary(report)

    for failure in outcome.failures:
        print(f"Warning: {failure}")
    if outcome.all_failed:
        print("Error: no report could be written.")
        sys.exit(1)

    print(f"\nReports written: {len(outcome.written)} file(s) in {directory.root}")
    print(f"Summary: {directory.summary_path}")

    if args.fail_on_violations and report.total_instances > 0:
        sys.exit(1)

    print("\nDone.")


if __name__ == "__main__":
    main()
