"""
Analytics Service

Read-side facade used by the HTTP routes and the CLI. It fetches from the
store, runs the pure aggregators and turns read failures into an empty
view with an error message, so the directory and heat map render an empty
state instead of failing.

Each method makes exactly one trip to the store (statistics makes one per
headline count and projection).
"""

import time
from typing import Optional

from ..db.store import ReportFilter, ReportStore
from ..observability import get_logger, get_metrics
from ..schemas import DirectoryView, HeatMapView, Report, StatisticsSummary
from .aggregation import aggregate_categories, aggregate_regions
from .defaulters import DefaulterAggregator, filter_defaulters
from .errors import FetchFailure, fetching
from .sequencing import RefreshSequencer
from .statistics import StatisticsAggregator

logger = get_logger(__name__)


class AnalyticsService:
    """
    Usage:
        service = AnalyticsService(store)
        view = service.heat_map()
        if view.error:
            ...show the message and a retry button...
    """

    def __init__(self, store: ReportStore, sequencer: Optional[RefreshSequencer] = None):
        self._store = store
        self._sequencer = sequencer or RefreshSequencer()
        self.defaulters = DefaulterAggregator(store)
        self.statistics = StatisticsAggregator(store)

    @property
    def sequencer(self) -> RefreshSequencer:
        return self._sequencer

    def heat_map(self) -> HeatMapView:
        """Region and category aggregation over every report."""
        sequence = self._sequencer.next()
        start = time.perf_counter()
        try:
            with fetching("reports for heat map"):
                reports = self._store.fetch_reports()
        except FetchFailure as e:
            self._record(start, success=False)
            return HeatMapView(error=str(e), sequence=sequence)

        view = HeatMapView(
            regions=aggregate_regions(reports),
            categories=aggregate_categories(reports),
            sequence=sequence,
        )
        self._record(start, success=True)
        logger.debug(
            "Heat map computed",
            report_count=len(reports),
            region_count=len(view.regions),
            category_count=len(view.categories),
        )
        return view

    def directory(
        self,
        min_reports: int = 2,
        search: Optional[str] = None,
        category: Optional[str] = None,
    ) -> DirectoryView:
        """
        Defaulter directory. min_reports=1 is the "show all" mode.

        `search` and `category` narrow the normalized profiles; see
        filter_defaulters().

        Raises:
            ValueError: min_reports < 1
        """
        sequence = self._sequencer.next()
        start = time.perf_counter()
        try:
            profiles = self.defaulters.compute_defaulters(min_reports)
        except FetchFailure as e:
            self._record(start, success=False)
            return DirectoryView(
                min_reports=min_reports, search=search, category=category,
                error=str(e), sequence=sequence,
            )
        self._record(start, success=True)
        return DirectoryView(
            min_reports=min_reports,
            search=search,
            category=category,
            defaulters=filter_defaulters(profiles, search, category),
            sequence=sequence,
        )

    def statistics_summary(self) -> StatisticsSummary:
        start = time.perf_counter()
        summary = self.statistics.compute_statistics()
        self._record(start, success=not summary.warnings)
        return summary

    def list_reports(self, filter: Optional[ReportFilter] = None) -> list[Report]:
        """
        Raises:
            FetchFailure: the store could not be read
        """
        with fetching("reports"):
            return self._store.fetch_reports(filter)

    def person_reports(self, person: str) -> list[Report]:
        """
        Raises:
            FetchFailure: the store could not be read
        """
        return self.defaulters.reports_for_person(person)

    @staticmethod
    def _record(start: float, success: bool) -> None:
        get_metrics().record_aggregation((time.perf_counter() - start) * 1000, success)
