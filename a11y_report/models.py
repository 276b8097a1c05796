"""Data model for accessibility scan results.

Raw axe-core output is normalized into these frozen dataclasses once, at
scan time. Everything downstream (aggregation, rendering, JSON export)
works on the normalized form only.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger(__name__)

# Longest HTML snippet kept per affected node
SNIPPET_LENGTH = 200


class Impact(str, Enum):
    """Severity tier axe-core assigns to a violation."""

    MINOR = "minor"
    MODERATE = "moderate"
    SERIOUS = "serious"
    CRITICAL = "critical"


# Most severe first
SEVERITY_ORDER = [Impact.CRITICAL, Impact.SERIOUS, Impact.MODERATE, Impact.MINOR]

DEFAULT_IMPACT = Impact.MINOR


def normalize_impact(value, context=""):
    """Map a raw impact value onto the Impact enum.

    Unknown or missing values fail closed to ``minor`` and log a warning.
    """
    if isinstance(value, Impact):
        return value
    text = str(value).strip().lower() if value is not None else ""
    try:
        return Impact(text)
    except ValueError:
        logger.warning("Unrecognized impact %r%s; treating as %s",
                       value, f" for {context}" if context else "", DEFAULT_IMPACT.value)
        return DEFAULT_IMPACT


def _text(value):
    return "" if value is None else str(value)


def _selector_from_target(target):
    """Return the first target path of an axe node as a selector string.

    Targets inside iframes or shadow roots come back as nested lists; those
    are joined with ``>>>``.
    """
    if not target:
        return ""
    first = target[0]
    if isinstance(first, (list, tuple)):
        return " >>> ".join(str(part) for part in first)
    return str(first)


def _unique(values):
    seen = []
    for value in values or []:
        value = str(value)
        if value not in seen:
            seen.append(value)
    return tuple(seen)


@dataclass(frozen=True)
class NodeRef:
    """One DOM element affected by a violation."""

    selector: str
    html_snippet: str = ""
    failure_summary: str = ""

    @classmethod
    def from_axe(cls, raw):
        html = _text(raw.get("html"))
        return cls(
            selector=_selector_from_target(raw.get("target")),
            html_snippet=html[:SNIPPET_LENGTH],
            failure_summary=_text(raw.get("failureSummary")),
        )

    def to_dict(self):
        return {
            "selector": self.selector,
            "html_snippet": self.html_snippet,
            "failure_summary": self.failure_summary,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            selector=_text(data.get("selector")),
            html_snippet=_text(data.get("html_snippet"))[:SNIPPET_LENGTH],
            failure_summary=_text(data.get("failure_summary")),
        )


@dataclass(frozen=True)
class Violation:
    """A rule that failed on a page, with the elements it failed on."""

    rule_id: str
    impact: Impact
    description: str = ""
    help_text: str = ""
    tags: tuple = ()
    affected_nodes: tuple = ()
    help_url: str = ""

    @property
    def wcag_tags(self):
        """Guideline tags only (``wcag2a``, ``wcag21aa``, ...)."""
        return tuple(tag for tag in self.tags if "wcag" in tag)

    @classmethod
    def from_axe(cls, raw, page_label=""):
        rule_id = _text(raw.get("id"))
        context = f"rule '{rule_id}' on page '{page_label}'" if page_label else f"rule '{rule_id}'"
        return cls(
            rule_id=rule_id,
            impact=normalize_impact(raw.get("impact"), context),
            description=_text(raw.get("description")),
            help_text=_text(raw.get("help")),
            tags=_unique(raw.get("tags")),
            affected_nodes=tuple(NodeRef.from_axe(n) for n in raw.get("nodes") or []),
            help_url=_text(raw.get("helpUrl")),
        )

    def to_dict(self):
        return {
            "rule_id": self.rule_id,
            "impact": self.impact.value,
            "description": self.description,
            "help_text": self.help_text,
            "help_url": self.help_url,
            "tags": list(self.tags),
            "affected_nodes": [node.to_dict() for node in self.affected_nodes],
        }

    @classmethod
    def from_dict(cls, data):
        rule_id = _text(data.get("rule_id"))
        return cls(
            rule_id=rule_id,
            impact=normalize_impact(data.get("impact"), f"rule '{rule_id}'"),
            description=_text(data.get("description")),
            help_text=_text(data.get("help_text")),
            tags=_unique(data.get("tags")),
            affected_nodes=tuple(NodeRef.from_dict(n) for n in data.get("affected_nodes") or []),
            help_url=_text(data.get("help_url")),
        )


@dataclass(frozen=True)
class CheckOutcome:
    """A rule that passed, or could not be decided (incomplete)."""

    rule_id: str
    description: str = ""

    @classmethod
    def from_axe(cls, raw):
        return cls(rule_id=_text(raw.get("id")), description=_text(raw.get("description")))

    def to_dict(self):
        return {"rule_id": self.rule_id, "description": self.description}

    @classmethod
    def from_dict(cls, data):
        return cls(rule_id=_text(data.get("rule_id")), description=_text(data.get("description")))


def _now_iso():
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(frozen=True)
class ScanResult:
    """The outcome of one axe-core audit against one page state."""

    page_label: str
    url: str
    timestamp: str
    violations: tuple = ()
    passes: tuple = ()
    incomplete: tuple = ()

    @property
    def node_count(self):
        """Affected elements across all violations on this page."""
        return sum(len(v.affected_nodes) for v in self.violations)

    @classmethod
    def from_axe(cls, page_label, raw, url=None):
        """Build a ScanResult from the dict returned by ``axe.run``.

        A rule id may appear in only one of violations, incomplete and passes;
        later duplicates are dropped (violations win, then incomplete).
        """
        seen = set()

        def _keep(rule_id, bucket):
            if rule_id in seen:
                logger.warning("Rule '%s' on page '%s' already reported; dropping %s entry",
                               rule_id, page_label, bucket)
                return False
            seen.add(rule_id)
            return True

        violations = []
        for item in raw.get("violations") or []:
            violation = Violation.from_axe(item, page_label)
            if _keep(violation.rule_id, "violation"):
                violations.append(violation)

        incomplete = []
        for item in raw.get("incomplete") or []:
            outcome = CheckOutcome.from_axe(item)
            if _keep(outcome.rule_id, "incomplete"):
                incomplete.append(outcome)

        passes = []
        for item in raw.get("passes") or []:
            outcome = CheckOutcome.from_axe(item)
            if _keep(outcome.rule_id, "pass"):
                passes.append(outcome)

        return cls(
            page_label=page_label,
            url=url if url is not None else _text(raw.get("url")),
            timestamp=_text(raw.get("timestamp")) or _now_iso(),
            violations=tuple(violations),
            passes=tuple(passes),
            incomplete=tuple(incomplete),
        )

    def to_dict(self):
        return {
            "page_label": self.page_label,
            "url": self.url,
            "timestamp": self.timestamp,
            "violations": [v.to_dict() for v in self.violations],
            "passes": [p.to_dict() for p in self.passes],
            "incomplete": [i.to_dict() for i in self.incomplete],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            page_label=_text(data.get("page_label")),
            url=_text(data.get("url")),
            timestamp=_text(data.get("timestamp")),
            violations=tuple(Violation.from_dict(v) for v in data.get("violations") or []),
            passes=tuple(CheckOutcome.from_dict(p) for p in data.get("passes") or []),
            incomplete=tuple(CheckOutcome.from_dict(i) for i in data.get("incomplete") or []),
        )
