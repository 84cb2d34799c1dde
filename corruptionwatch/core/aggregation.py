"""
Region and Category Aggregators

Pure folds over an already-fetched report collection. Nothing here talks
to the store; fetching (and fetch failure) is the caller's business.

Region names are trimmed but otherwise taken as entered, so "Mumbai" and
"mumbai" are two regions.
"""

from collections import Counter
from typing import Iterable, Optional

from ..schemas import CategoryStat, RegionStat, Report
from .gazetteer import resolve_coordinates
from .palette import assign_colors
from .severity import classify_severity


def normalize_region(region: Optional[str]) -> Optional[str]:
    """Trimmed region name, or None when nothing is left."""
    if region is None:
        return None
    region = region.strip()
    return region or None


def category_label(key: str) -> str:
    """'abuse_of_power' -> 'Abuse of power'."""
    if not key:
        return key
    return key[0].upper() + key[1:].replace("_", " ")


class _RegionAccumulator:
    __slots__ = ("count", "categories", "coordinates")

    def __init__(self):
        self.count = 0
        self.categories: list[str] = []
        self.coordinates: Optional[tuple[float, float]] = None

    def add(self, report: Report) -> None:
        self.count += 1
        category = report.category.value
        if category not in self.categories:
            self.categories.append(category)
        if self.coordinates is None:
            self.coordinates = report.coordinates


def aggregate_regions(reports: Iterable[Report]) -> list[RegionStat]:
    """
    Fold reports into per-region statistics, most reported first.

    - Reports without a region are skipped.
    - Coordinates come from the first report in the region that has both;
      the gazetteer is consulted only when none does.
    - Ties keep the order in which regions were first seen.
    """
    groups: dict[str, _RegionAccumulator] = {}
    for report in reports:
        region = normalize_region(report.area_region)
        if region is None:
            continue
        groups.setdefault(region, _RegionAccumulator()).add(report)

    stats = []
    for region, acc in groups.items():
        coordinates = acc.coordinates or resolve_coordinates(region)
        stats.append(RegionStat(
            region=region,
            count=acc.count,
            latitude=coordinates[0] if coordinates else None,
            longitude=coordinates[1] if coordinates else None,
            severity=classify_severity(acc.count),
            categories=acc.categories,
        ))

    # sorted() is stable, so equal counts stay in first-seen order
    return sorted(stats, key=lambda s: s.count, reverse=True)


def aggregate_categories(reports: Iterable[Report]) -> list[CategoryStat]:
    """
    Fold reports into the category distribution, largest first.

    Only categories that actually occur are returned. Colours follow the
    final sorted position.
    """
    counts = count_values(r.category.value for r in reports)
    keys = [key for key, _ in counts]
    colors = assign_colors(keys)
    return [
        CategoryStat(key=key, name=category_label(key), value=value, color=color)
        for (key, value), color in zip(counts, colors)
    ]


def count_values(values: Iterable[Optional[str]], top: Optional[int] = None) -> list[tuple[str, int]]:
    """
    Count non-empty values, most common first, ties in first-seen order.

    Used for the column projections behind the statistics page.
    """
    counter: Counter = Counter()
    for value in values:
        if value is None:
            continue
        value = str(value).strip()
        if value:
            counter[value] += 1
    # Counter preserves insertion order, so the stable sort keeps ties in order
    ranked = sorted(counter.items(), key=lambda item: item[1], reverse=True)
    return ranked[:top] if top is not None else ranked
