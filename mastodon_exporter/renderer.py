"""
Prometheus text exposition rendering.
"""
from typing import Iterable, Mapping

from .catalog import METRIC_CATALOG, MetricSpec


def render(prefix: str, metrics: Mapping[str, int],
           catalog: Iterable[MetricSpec] = METRIC_CATALOG) -> str:
    """
    Render a metric mapping as exposition text.

    Walks the catalog in declared order and emits a HELP/TYPE/sample triplet
    for every entry whose key is present in ``metrics``. Keys absent from the
    catalog are dropped; catalog entries absent from ``metrics`` are skipped.

    Args:
        prefix: Namespace prepended to every metric name
        metrics: Metric key to integer value
        catalog: Ordered metric specs to render against
    """
    lines = []
    for spec in catalog:
        if spec.key not in metrics:
            continue
        name = f"{prefix}_{spec.key}"
        lines.append(f"# HELP {name} {spec.help}")
        lines.append(f"# TYPE {name} {spec.type}")
        lines.append(f"{name} {metrics[spec.key]}")
    return "\n".join(lines)
