"""Step definitions for the sampling and retention features."""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from redisstats.adapters.retrieval import StaticStatusSource
from redisstats.adapters.storage import InMemorySampleStore
from redisstats.core.buckets import decode_bucket
from redisstats.core.config import RetentionLimits, StatsConfig
from redisstats.core.models import MonitoredServer
from redisstats.services.monitor import StatsMonitor
from redisstats.services.reports import TrimReport


@dataclass
class PipelineContext:
    """State shared between the steps of one scenario."""

    server: MonitoredServer | None = None
    store: InMemorySampleStore = field(default_factory=InMemorySampleStore)
    source: StaticStatusSource = field(default_factory=lambda: StaticStatusSource({}))
    metrics: tuple[str, ...] = ()
    limits: RetentionLimits = field(default_factory=RetentionLimits)
    now: datetime = datetime(2016, 9, 10, 10, 15, 30, tzinfo=UTC)
    last_trim: TrimReport | None = None

    def monitor(self) -> StatsMonitor:
        assert self.server is not None
        config = StatsConfig(
            servers=(self.server,), metrics=self.metrics, limits=self.limits
        )
        return StatsMonitor(config, self.source, self.store, clock=lambda: self.now)


def run_async(coro: Any) -> Any:
    """Run a coroutine in a new event loop (steps are synchronous)."""
    return asyncio.run(coro)


def _unescape(text: str) -> str:
    return text.replace("\\r", "\r").replace("\\n", "\n")


async def _everything(store: InMemorySampleStore, key: str) -> list[str]:
    return await store.range_by_score(key, float("-inf"), float("inf"))


@pytest.fixture
def ctx() -> PipelineContext:
    """Fresh scenario context for each test."""
    return PipelineContext()


# === Background Steps ===
@given(parsers.parse('a monitored server "{host}:{port:d}"'))
def step_server(ctx: PipelineContext, host: str, port: int) -> None:
    ctx.server = MonitoredServer(host, port)


@given("an empty sample store")
def step_store(ctx: PipelineContext) -> None:
    ctx.store = InMemorySampleStore()


# === Sampling Steps ===
@given(parsers.parse('the tracked metrics "{names}"'))
def step_metrics(ctx: PipelineContext, names: str) -> None:
    ctx.metrics = tuple(n.strip() for n in names.split(","))


@given(parsers.parse('the server reports "{blob}"'))
@when(parsers.parse('the server reports "{blob}"'))
def step_reports(ctx: PipelineContext, blob: str) -> None:
    assert ctx.server is not None
    ctx.source.set(ctx.server, _unescape(blob))


@when("one sampling tick runs")
def step_sample(ctx: PipelineContext) -> None:
    reports = run_async(ctx.monitor().sample_once())
    assert all(r.ok for r in reports)


@when("one sampling tick runs a minute later")
def step_sample_later(ctx: PipelineContext) -> None:
    ctx.now += timedelta(minutes=1)
    step_sample(ctx)


@then(parsers.parse('"{key}" holds one raw sample with value "{value}"'))
def step_raw_sample(ctx: PipelineContext, key: str, value: str) -> None:
    payloads = run_async(_everything(ctx.store, key))
    expected_stamp = ctx.now.strftime("%Y-%m-%dT%H:%M:%S.000Z")
    assert [json.loads(p) for p in payloads] == [{expected_stamp: value}]


@then(parsers.parse('"{key}" holds a bucket with mean {mean:g} and n {n:d}'))
def step_bucket(ctx: PipelineContext, key: str, mean: float, n: int) -> None:
    (payload,) = run_async(_everything(ctx.store, key))
    bucket = decode_bucket(payload)
    assert bucket.n == n
    assert bucket.mean == pytest.approx(mean)


@then(parsers.parse('"{key}" is empty'))
def step_empty(ctx: PipelineContext, key: str) -> None:
    assert run_async(ctx.store.cardinality(key)) == 0


# === Retention Steps ===
@given(parsers.parse("a raw maximum of {limit:d}"))
def step_raw_limit(ctx: PipelineContext, limit: int) -> None:
    ctx.limits = RetentionLimits(raw=limit)


@given(parsers.parse('"{key}" contains entries at scores {scores}'))
def step_fill(ctx: PipelineContext, key: str, scores: str) -> None:
    for score in (int(s) for s in scores.split(",")):
        run_async(ctx.store.append(key, score, f"entry-{score}"))


@when("one retention pass runs")
def step_trim(ctx: PipelineContext) -> None:
    ctx.last_trim = run_async(ctx.monitor().trim_once())


@then(parsers.parse("the last retention pass removed {count:d} entries"))
def step_trim_removed(ctx: PipelineContext, count: int) -> None:
    assert ctx.last_trim is not None
    assert ctx.last_trim.total_removed == count


@then(parsers.parse('"{key}" contains entries at scores {scores}'))
def step_scores(ctx: PipelineContext, key: str, scores: str) -> None:
    expected = [f"entry-{int(s)}" for s in scores.split(",")]
    assert run_async(_everything(ctx.store, key)) == expected
