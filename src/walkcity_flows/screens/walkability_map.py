"""Walkability map screen.

Keeps the map's view state (metric, sidebar, filters, detail level) undoable and
reloads the map layer through a :class:`~walkcity_flows.loader.ResilientLoader`
whenever the query it depends on changes.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from walkcity_flows.config import WalkCityConfig
from walkcity_flows.core.draft import DraftFormState
from walkcity_flows.core.events import FieldChanged, UndoApplied, utcnow
from walkcity_flows.core.history import HistoryStack
from walkcity_flows.core.types import StrEnum
from walkcity_flows.exceptions import MapDataUnavailableError
from walkcity_flows.loader.resilient import ResilientLoader

if TYPE_CHECKING:
    from walkcity_flows.core.events import ChangeNotifier
    from walkcity_flows.core.history import Snapshot
    from walkcity_flows.loader.resilient import LoadOperation

__all__ = [
    "DEFAULT_SCORES",
    "FILTERS",
    "METRICS",
    "DetailLevel",
    "MapLayer",
    "MapQuery",
    "ScoreBand",
    "SimulatedMapSource",
    "WalkabilityMapScreen",
    "score_band",
]

logger = logging.getLogger(__name__)

METRICS: dict[str, str] = {
    "overall": "Overall Walkability",
    "safety": "Safety",
    "amenities": "Amenities",
    "connectivity": "Connectivity",
    "comfort": "Comfort",
}

DEFAULT_SCORES: dict[str, int] = {
    "overall": 78,
    "safety": 82,
    "amenities": 65,
    "connectivity": 90,
    "comfort": 75,
}
"""Static demonstration scores, there is no scoring algorithm behind them."""

FILTERS: dict[str, str] = {
    "sidewalks": "Sidewalks",
    "crosswalks": "Crosswalks",
    "lighting": "Street Lighting",
    "traffic": "Traffic Density",
    "speed_limits": "Speed Limits",
    "public_transit": "Public Transit",
    "bike_lanes": "Bike Lanes",
    "accessibility": "Accessibility Features",
}


class DetailLevel(StrEnum):
    SIMPLE = "simple"
    DETAILED = "detailed"


class ScoreBand(StrEnum):
    """Qualitative bucket of a 0-100 walkability score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


def score_band(score: int) -> ScoreBand:
    """Bucket a score at the 80/60/40/20 thresholds.

    Example:
        >>> score_band(82)
        <ScoreBand.EXCELLENT: 'excellent'>
    """
    if score >= 80:
        return ScoreBand.EXCELLENT
    if score >= 60:
        return ScoreBand.GOOD
    if score >= 40:
        return ScoreBand.FAIR
    if score >= 20:
        return ScoreBand.POOR
    return ScoreBand.CRITICAL


@dataclass(frozen=True)
class MapQuery:
    """Parameters of one map layer load.

    Attributes:
        metric: Selected walkability metric.
        filters: Active data filters.
    """

    metric: str
    filters: frozenset[str] = frozenset()


@dataclass(frozen=True)
class MapLayer:
    """Result of a map layer load."""

    metric: str
    score: int
    filters: frozenset[str]


class SimulatedMapSource:
    """Demonstration load operation with configurable latency and failure rate.

    Attributes:
        failure_rate: Probability that a load raises.
        latency: Delay before each load completes.
        scores: Static scores served per metric.
    """

    def __init__(
        self,
        failure_rate: float = 0.05,
        latency: timedelta = timedelta(milliseconds=800),
        scores: dict[str, int] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.failure_rate = failure_rate
        self.latency = latency
        self.scores = scores or dict(DEFAULT_SCORES)
        self._rng = rng or random.Random()

    @classmethod
    def from_config(cls, config: WalkCityConfig, rng: random.Random | None = None) -> SimulatedMapSource:
        return cls(failure_rate=config.map_failure_rate, latency=config.map_latency, rng=rng)

    async def __call__(self, query: MapQuery) -> MapLayer:
        should_fail = self._rng.random() < self.failure_rate
        await asyncio.sleep(self.latency.total_seconds())
        if should_fail:
            raise MapDataUnavailableError(query.metric)
        return MapLayer(metric=query.metric, score=self.scores[query.metric], filters=query.filters)


class WalkabilityMapScreen:
    """View state and data loading of the walkability map.

    Attributes:
        view: Undoable view state.
        history: Undo stack of the view state.
        loader: Loader for the map layer of the current query.
        notifier: Change-event fan-out shared by the view and the loader.
    """

    screen_name = "walkability_map"

    def __init__(
        self,
        source: LoadOperation[MapQuery, MapLayer] | None = None,
        notifier: ChangeNotifier | None = None,
        config: WalkCityConfig | None = None,
    ) -> None:
        config = config or WalkCityConfig()
        self.history = HistoryStack(config.history_capacity)
        self.view = DraftFormState(
            {
                "metric": "overall",
                "show_sidebar": True,
                "filters": [],
                "detail_level": DetailLevel.SIMPLE,
            },
            history=self.history,
        )
        self.loader: ResilientLoader[MapQuery, MapLayer] = ResilientLoader(
            source or SimulatedMapSource.from_config(config),
            config.retry_policy,
            name=self.screen_name,
            notifier=notifier,
        )
        self.notifier = self.loader.notifier

    @property
    def metric(self) -> str:
        return self.view.get_field("metric")

    @property
    def active_filters(self) -> frozenset[str]:
        return frozenset(self.view.get_field("filters"))

    @property
    def query(self) -> MapQuery:
        return MapQuery(metric=self.metric, filters=self.active_filters)

    @property
    def score(self) -> int:
        return DEFAULT_SCORES[self.metric]

    @property
    def band(self) -> ScoreBand:
        return score_band(self.score)

    def open(self) -> asyncio.Task[None] | None:
        """Load the layer for the initial view. Needs a running event loop."""
        return self.loader.trigger(self.query)

    def close(self) -> None:
        self.loader.cancel()

    def select_metric(self, metric: str) -> None:
        if metric not in METRICS:
            msg = f"Unknown metric '{metric}'"
            raise ValueError(msg)
        self._edit("metric", metric)
        self._refresh()

    def toggle_filter(self, filter_id: str) -> None:
        if filter_id not in FILTERS:
            msg = f"Unknown filter '{filter_id}'"
            raise ValueError(msg)
        filters = list(self.view.get_field("filters"))
        if filter_id in filters:
            filters.remove(filter_id)
        else:
            filters.append(filter_id)
        self._edit("filters", filters)
        self._refresh()

    def set_sidebar(self, visible: bool) -> None:
        self._edit("show_sidebar", visible)

    def toggle_detail_level(self) -> None:
        simple = self.view.get_field("detail_level") == DetailLevel.SIMPLE
        level = DetailLevel.DETAILED if simple else DetailLevel.SIMPLE
        self._edit("detail_level", level)

    def undo(self) -> Snapshot | None:
        """Restore the previous view and reload if the query changed."""
        snapshot = self.history.undo()
        if snapshot is None:
            return None
        self.view.restore(snapshot)
        self.notifier.emit(
            UndoApplied(
                source=self.screen_name,
                timestamp=utcnow(),
                sequence=snapshot.sequence,
                remaining=len(self.history),
            )
        )
        self._refresh()
        return snapshot

    def retry(self) -> asyncio.Task[None]:
        """Manual retry affordance shown once automatic retries are exhausted."""
        return self.loader.manual_retry()

    def _edit(self, name: str, value: Any) -> None:
        old_value = self.view.get_field(name)
        self.view.set_field(name, value)
        self.notifier.emit(
            FieldChanged(source=self.screen_name, timestamp=utcnow(), field=name, old_value=old_value, new_value=value)
        )

    def _refresh(self) -> None:
        # only reload once the screen has been opened
        if self.loader.params is not None:
            self.loader.trigger(self.query)
