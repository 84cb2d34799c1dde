"""
Tests for the pure aggregation layer

Severity tiers, the city gazetteer, the palette, and the region and
category folds. None of these touch a store.
"""

import pytest

from corruptionwatch.core import (
    PALETTE,
    RefreshSequencer,
    aggregate_categories,
    aggregate_regions,
    assign_colors,
    category_label,
    classify_severity,
    resolve_coordinates,
)
from corruptionwatch.core.aggregation import count_values, normalize_region
from corruptionwatch.schemas import Category, Severity

from conftest import make_report


class TestSeverity:
    """Thresholds shared by the heat map and the directory."""

    @pytest.mark.parametrize("count,expected", [
        (0, Severity.LOW),
        (9, Severity.LOW),
        (10, Severity.MEDIUM),
        (19, Severity.MEDIUM),
        (20, Severity.HIGH),
        (39, Severity.HIGH),
        (40, Severity.CRITICAL),
        (1000, Severity.CRITICAL),
    ])
    def test_boundaries(self, count, expected):
        assert classify_severity(count) == expected

    def test_negative_is_low(self):
        assert classify_severity(-5) == Severity.LOW

    def test_monotonic(self):
        """A larger count never yields a lower tier."""
        order = [Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]
        tiers = [order.index(classify_severity(n)) for n in range(0, 60)]
        assert tiers == sorted(tiers)


class TestGazetteer:

    def test_case_and_whitespace_insensitive(self):
        assert resolve_coordinates("  MUMBAI ") == resolve_coordinates("mumbai")
        assert resolve_coordinates("Mumbai").latitude == pytest.approx(19.0760)

    def test_aliases(self):
        assert resolve_coordinates("Bengaluru") == resolve_coordinates("Bangalore")
        assert resolve_coordinates("Delhinn") == resolve_coordinates("Delhi")

    def test_unknown_region(self):
        assert resolve_coordinates("Atlantis") is None
        assert resolve_coordinates("") is None
        assert resolve_coordinates(None) is None


class TestPalette:

    def test_twelve_colours(self):
        assert len(PALETTE) == 12
        assert len(set(PALETTE)) == 12

    def test_positional_and_wrapping(self):
        colors = assign_colors([f"k{i}" for i in range(14)])
        assert colors[0] == "#FF6B6B"
        assert colors[12] == colors[0]
        assert colors[13] == colors[1]


class TestRegionAggregation:

    def test_scenario_mumbai_delhi(self):
        """Coordinates from the first located report, else the gazetteer."""
        reports = [
            make_report(region="Mumbai", latitude=19.07, longitude=72.88),
            make_report(region="Mumbai"),
            make_report(region="Delhi"),
        ]

        stats = aggregate_regions(reports)

        assert [s.region for s in stats] == ["Mumbai", "Delhi"]
        mumbai, delhi = stats
        assert mumbai.count == 2
        assert (mumbai.latitude, mumbai.longitude) == (19.07, 72.88)
        assert mumbai.severity == Severity.LOW
        assert delhi.count == 1
        assert delhi.latitude == pytest.approx(28.61, abs=0.01)
        assert delhi.longitude == pytest.approx(77.21, abs=0.01)

    def test_report_coordinates_beat_gazetteer(self):
        stats = aggregate_regions([
            make_report(region="Pune"),
            make_report(region="Pune", latitude=18.0, longitude=73.0),
            make_report(region="Pune", latitude=1.0, longitude=2.0),
        ])
        assert (stats[0].latitude, stats[0].longitude) == (18.0, 73.0)

    def test_unknown_region_kept_without_coordinates(self):
        stats = aggregate_regions([make_report(region="Smallville")])
        assert stats[0].region == "Smallville"
        assert not stats[0].mappable

    def test_blank_regions_skipped(self):
        stats = aggregate_regions([
            make_report(region=None),
            make_report(region="   "),
            make_report(region="Goa"),
        ])
        assert [s.region for s in stats] == ["Goa"]

    def test_region_names_trimmed_not_case_folded(self):
        stats = aggregate_regions([
            make_report(region=" Mumbai "),
            make_report(region="Mumbai"),
            make_report(region="mumbai"),
        ])
        assert {s.region: s.count for s in stats} == {"Mumbai": 2, "mumbai": 1}

    def test_counts_sum_to_located_reports(self):
        reports = [make_report(region=r) for r in ["A", "B", "A", None, "C", "A", "B"]]
        stats = aggregate_regions(reports)
        assert sum(s.count for s in stats) == 6
        assert len({s.region for s in stats}) == len(stats)

    def test_ties_keep_first_seen_order(self):
        stats = aggregate_regions([make_report(region=r) for r in ["Kochi", "Patna", "Surat"]])
        assert [s.region for s in stats] == ["Kochi", "Patna", "Surat"]

    def test_categories_per_region_distinct(self):
        stats = aggregate_regions([
            make_report(region="Goa", category=Category.FRAUD),
            make_report(region="Goa", category=Category.FRAUD),
            make_report(region="Goa", category=Category.NEPOTISM),
        ])
        assert stats[0].categories == ["fraud", "nepotism"]

    def test_severity_follows_count(self):
        stats = aggregate_regions([make_report(region="Delhi") for _ in range(20)])
        assert stats[0].severity == Severity.HIGH

    def test_empty(self):
        assert aggregate_regions([]) == []


class TestCategoryAggregation:

    def test_labels(self):
        assert category_label("abuse_of_power") == "Abuse of power"
        assert category_label("misuse_of_funds") == "Misuse of funds"
        assert category_label("bribery") == "Bribery"

    def test_sorted_with_positional_colours(self):
        reports = (
            [make_report(category=Category.FRAUD)]
            + [make_report(category=Category.BRIBERY) for _ in range(3)]
            + [make_report(category=Category.ABUSE_OF_POWER) for _ in range(2)]
        )

        stats = aggregate_categories(reports)

        assert [(s.key, s.value) for s in stats] == [
            ("bribery", 3), ("abuse_of_power", 2), ("fraud", 1),
        ]
        assert [s.color for s in stats] == list(PALETTE[:3])
        assert stats[1].name == "Abuse of power"

    def test_no_zero_or_duplicate_entries(self):
        stats = aggregate_categories([make_report(category=Category.OTHER) for _ in range(4)])
        assert len(stats) == 1
        assert stats[0].value == 4
        assert all(s.value > 0 for s in stats)

    def test_total_matches_report_count(self):
        reports = [make_report(category=c) for c in Category]
        assert sum(s.value for s in aggregate_categories(reports)) == len(reports)


class TestCountValues:

    def test_skips_empty_and_trims(self):
        assert count_values(["a", " a", None, "", "b"]) == [("a", 2), ("b", 1)]

    def test_top(self):
        assert count_values(["x", "y", "y", "z"], top=2) == [("y", 2), ("x", 1)]

    def test_normalize_region(self):
        assert normalize_region("  ") is None
        assert normalize_region(" Goa ") == "Goa"


class TestRefreshSequencer:

    def test_sequences_increase(self):
        sequencer = RefreshSequencer()
        assert sequencer.next() < sequencer.next()

    def test_stale_response_discarded(self):
        sequencer = RefreshSequencer()
        first, second = sequencer.next(), sequencer.next()

        # The newer response lands first; the older one must be dropped
        assert sequencer.accept("heatmap", second)
        assert not sequencer.accept("heatmap", first)
        assert sequencer.latest("heatmap") == second

    def test_views_tracked_separately(self):
        sequencer = RefreshSequencer()
        seq = sequencer.next()
        assert sequencer.accept("heatmap", seq)
        assert sequencer.accept("directory", seq)
        assert not sequencer.accept("heatmap", seq)
