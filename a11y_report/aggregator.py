"""Merge per-page scan results into one cross-page report."""

from dataclasses import dataclass, field

from .models import SEVERITY_ORDER, Impact, Violation, normalize_impact


@dataclass
class RuleSummary:
    """One row of the deduplicated rule table.

    Fixed fields come from the rule's first occurrence in the run.
    """

    rule_id: str
    impact: Impact
    description: str
    help_text: str
    tags: tuple
    help_url: str = ""
    pages: list = field(default_factory=list)
    instance_count: int = 0

    @property
    def wcag_tags(self):
        return tuple(tag for tag in self.tags if "wcag" in tag)

    def to_dict(self):
        return {
            "rule_id": self.rule_id,
            "impact": self.impact.value,
            "description": self.description,
            "help_text": self.help_text,
            "help_url": self.help_url,
            "tags": list(self.tags),
            "pages": list(self.pages),
            "instance_count": self.instance_count,
        }


@dataclass(frozen=True)
class ViolationInstance:
    """A violation together with the page it was found on."""

    page_label: str
    violation: Violation


@dataclass(frozen=True)
class PageSummary:
    """Per-page row of the summary table."""

    label: str
    url: str
    violation_count: int
    pass_count: int
    incomplete_count: int
    node_count: int


@dataclass
class AggregatedReport:
    """Cross-page summary derived from an ordered sequence of ScanResults."""

    pages_scanned: int = 0
    total_instances: int = 0
    by_impact: dict = field(default_factory=lambda: {i.value: 0 for i in SEVERITY_ORDER})
    rules: dict = field(default_factory=dict)
    instances: list = field(default_factory=list)
    pages: list = field(default_factory=list)
    screenshots: dict = field(default_factory=dict)
    total_passes: int = 0
    total_incomplete: int = 0
    total_nodes: int = 0

    @property
    def pass_rate(self):
        """Share of evaluated rule checks that passed, 0.0 to 1.0."""
        checked = self.total_passes + self.total_instances
        if checked == 0:
            return 0.0
        return self.total_passes / checked

    def sorted_rules(self):
        """Rule table rows, most severe first, then by rule id."""
        rank = {impact: i for i, impact in enumerate(SEVERITY_ORDER)}
        return sorted(self.rules.values(), key=lambda r: (rank.get(r.impact, len(rank)), r.rule_id))

    def instances_for(self, page_label):
        return [inst for inst in self.instances if inst.page_label == page_label]

    def to_dict(self):
        return {
            "pages_scanned": self.pages_scanned,
            "total_violations": self.total_instances,
            "total_passes": self.total_passes,
            "total_incomplete": self.total_incomplete,
            "total_nodes": self.total_nodes,
            "pass_rate": round(self.pass_rate, 4),
            "by_impact": dict(self.by_impact),
            "rules": [rule.to_dict() for rule in self.sorted_rules()],
            "pages": [
                {
                    "label": p.label,
                    "url": p.url,
                    "violations": p.violation_count,
                    "passes": p.pass_count,
                    "incomplete": p.incomplete_count,
                    "nodes": p.node_count,
                }
                for p in self.pages
            ],
            "screenshots": dict(self.screenshots),
        }


def aggregate(results, screenshots=None):
    """Aggregate scan results in visitation order.

    Every violation instance is kept in ``instances``. ``rules`` is a
    separate view keyed by rule id, listing the pages each rule failed on in
    first-seen order. Severity counters count instances, so a rule failing on
    N pages adds N to its impact's total.

    Args:
        results: Ordered sequence of ScanResult. May be empty.
        screenshots: Optional mapping of page label to full-page screenshot path.

    Returns:
        AggregatedReport.
    """
    report = AggregatedReport(screenshots=dict(screenshots or {}))

    for result in results:
        report.pages_scanned += 1
        report.total_passes += len(result.passes)
        report.total_incomplete += len(result.incomplete)
        report.total_nodes += result.node_count
        report.pages.append(PageSummary(
            label=result.page_label,
            url=result.url,
            violation_count=len(result.violations),
            pass_count=len(result.passes),
            incomplete_count=len(result.incomplete),
            node_count=result.node_count,
        ))

        for violation in result.violations:
            impact = normalize_impact(violation.impact, f"rule '{violation.rule_id}'")
            entry = report.rules.get(violation.rule_id)
            if entry is None:
                entry = RuleSummary(
                    rule_id=violation.rule_id,
                    impact=impact,
                    description=violation.description,
                    help_text=violation.help_text,
                    tags=tuple(violation.tags),
                    help_url=violation.help_url,
                )
                report.rules[violation.rule_id] = entry
            if result.page_label not in entry.pages:
                entry.pages.append(result.page_label)
            entry.instance_count += 1

            report.instances.append(ViolationInstance(result.page_label, violation))
            report.by_impact[impact.value] += 1
            report.total_instances += 1

    return report
