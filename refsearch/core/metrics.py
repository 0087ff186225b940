from __future__ import annotations

from contextlib import contextmanager

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

registry = CollectorRegistry(auto_describe=True)

REFERENCE_SEARCHES_TOTAL = Counter(
    "refsearch_reference_searches_total",
    "Scene reference searches partitioned by outcome.",
    ["outcome"],
    registry=registry,
)

SCENE_TYPES_DETECTED = Counter(
    "refsearch_scene_types_detected_total",
    "Scene analyses by resulting scene type and emotional tone.",
    ["scene_type", "tone"],
    registry=registry,
)

SEARCH_DURATION = Histogram(
    "refsearch_search_duration_seconds",
    "Wall-clock duration of a scene reference search.",
    registry=registry,
)

CANDIDATES_EVALUATED = Histogram(
    "refsearch_candidates_evaluated",
    "Number of candidate images scored per search.",
    buckets=(0, 1, 2, 5, 10, 20, 50, 100),
    registry=registry,
)


@contextmanager
def track_search():
    with SEARCH_DURATION.time():
        yield


def record_search_outcome(outcome: str, candidates_evaluated: int) -> None:
    REFERENCE_SEARCHES_TOTAL.labels(outcome=outcome).inc()
    CANDIDATES_EVALUATED.observe(candidates_evaluated)


def record_scene_analysis(scene_type: str, tone: str) -> None:
    SCENE_TYPES_DETECTED.labels(scene_type=scene_type, tone=tone).inc()


def get_metrics_payload() -> bytes:
    return generate_latest(registry)
