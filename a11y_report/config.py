"""Audit run configuration loaded from a JSON file."""

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

from .errors import ConfigError
from .output import page_slug
from .scanner import AXE_CDN_URL, DEFAULT_RULE_TAGS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageTarget:
    """A page to visit: label used in reports, URL, optional extra settle time."""

    label: str
    url: str
    wait_ms: int | None = None


@dataclass(frozen=True)
class AuditConfig:
    pages: tuple = ()
    rule_tags: tuple = tuple(DEFAULT_RULE_TAGS)
    output_dir: str = "build/reports"
    axe_script_url: str = AXE_CDN_URL
    axe_script_path: str | None = None
    axe_rules: dict = field(default_factory=dict)
    iframes: bool = True
    headless: bool = True
    viewport: dict = field(default_factory=lambda: {"width": 1280, "height": 720})
    timeout_ms: int = 60000
    settle_ms: int = 3000
    retry_attempts: int = 1
    retry_delay_ms: int = 2000
    screenshots: bool = True

    def with_overrides(self, **overrides):
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


_INT_KEYS = ("timeout_ms", "settle_ms", "retry_attempts", "retry_delay_ms")
_BOOL_KEYS = ("iframes", "headless", "screenshots")
_STR_KEYS = ("output_dir", "axe_script_url", "axe_script_path")


def _parse_page(entry, position):
    if not isinstance(entry, dict):
        raise ConfigError(f"pages[{position}] must be an object with 'label' and 'url'")
    label = entry.get("label")
    url = entry.get("url")
    if not label or not url:
        raise ConfigError(f"pages[{position}] needs both 'label' and 'url'")
    wait_ms = entry.get("wait_ms")
    if wait_ms is not None and (isinstance(wait_ms, bool) or not isinstance(wait_ms, int)):
        raise ConfigError(f"pages[{position}].wait_ms must be an integer")
    return PageTarget(label=str(label), url=str(url), wait_ms=wait_ms)


def parse_config(data):
    """Validate a config dict and build an AuditConfig.

    Unknown keys are ignored with a warning.
    """
    if not isinstance(data, dict):
        raise ConfigError("Config must be a JSON object")

    known = {f.name for f in fields(AuditConfig)}
    for key in sorted(set(data) - known):
        logger.warning("Ignoring unknown config key: %s", key)

    values = {}
    if "pages" in data:
        if not isinstance(data["pages"], list):
            raise ConfigError("'pages' must be a list")
        values["pages"] = tuple(_parse_page(p, i) for i, p in enumerate(data["pages"]))

    if "rule_tags" in data:
        tags = data["rule_tags"]
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags) or not tags:
            raise ConfigError("'rule_tags' must be a non-empty list of strings")
        values["rule_tags"] = tuple(tags)

    for key in _INT_KEYS:
        if key in data:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"'{key}' must be a non-negative integer")
            values[key] = value

    for key in _BOOL_KEYS:
        if key in data:
            if not isinstance(data[key], bool):
                raise ConfigError(f"'{key}' must be true or false")
            values[key] = data[key]

    for key in _STR_KEYS:
        if key in data and data[key] is not None:
            if not isinstance(data[key], str):
                raise ConfigError(f"'{key}' must be a string")
            values[key] = data[key]

    if "axe_rules" in data:
        if not isinstance(data["axe_rules"], dict):
            raise ConfigError("'axe_rules' must be an object")
        values["axe_rules"] = dict(data["axe_rules"])

    if "viewport" in data:
        viewport = data["viewport"]
        if (not isinstance(viewport, dict)
                or not isinstance(viewport.get("width"), int)
                or not isinstance(viewport.get("height"), int)):
            raise ConfigError("'viewport' must have integer 'width' and 'height'")
        values["viewport"] = {"width": viewport["width"], "height": viewport["height"]}

    return AuditConfig(**values)


def load_config(config_path):
    """Load an AuditConfig from a JSON file. No path gives the defaults."""
    if not config_path:
        return AuditConfig()

    path = Path(config_path)
    if not path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {config_path}: {e}") from e

    return parse_config(data)


def distinct_pages(pages):
    """Relabel pages whose label slugs to one already used earlier in the run.

    Report and screenshot file names derive from the label, so a repeated
    label ("Home" twice, or "Home" and "home") becomes "Home 2", "Home 3"...
    """
    seen = set()
    distinct = []
    for target in pages:
        label = target.label
        n = 2
        while page_slug(label) in seen:
            label = f"{target.label} {n}"
            n += 1
        if label != target.label:
            logger.warning("Duplicate page label '%s' renamed to '%s'", target.label, label)
            target = replace(target, label=label)
        seen.add(page_slug(label))
        distinct.append(target)
    return tuple(distinct)
