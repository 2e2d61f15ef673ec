"""Bounded worker pool that drives discovery, planning and rendering."""

from __future__ import annotations

import functools
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, Sequence

from .counters import Outcome, OutcomeCounters
from .errors import DurationUnavailable, ItemError, MissingInputError, RunCancelled
from .media import WorkItem, discover_items
from .planner import DurationProbe, SkipPlan, plan_item
from .request import AxisResolution, RunRequest
from .runlog import get_run_logger, run_log
from .sox import query_duration, render_spectrogram
from .summary import RunSummary
from .timespec import TimeWindow, to_display

__all__ = [
    "ItemOutcome",
    "Renderer",
    "default_probe",
    "default_renderer",
    "execute_item",
    "record_outcome",
    "run_batch",
    "run_request",
]


class Renderer(Protocol):
    def __call__(
        self,
        path: Path,
        output_path: Path,
        axes: AxisResolution,
        window: Optional[TimeWindow],
    ) -> None: ...


OutcomeCallback = Callable[["ItemOutcome"], None]


@dataclass(frozen=True)
class ItemOutcome:
    """
    Terminal result of one work item.

    Attributes:
        item (WorkItem): The processed item.
        outcome (Outcome): One of generated, skipped or failed.
        adjusted (bool): Whether the window was clamped for this item.
        window (Optional[TimeWindow]): Window actually rendered, when rendering ran.
        error (Optional[str]): Failure description for failed items.
    """

    item: WorkItem
    outcome: Outcome
    adjusted: bool = False
    window: Optional[TimeWindow] = None
    error: Optional[str] = None


def default_probe(request: RunRequest) -> DurationProbe:
    """Return a duration probe bound to the request's ``soxi`` settings."""

    return functools.partial(
        query_duration,
        soxi_path=request.soxi_path,
        timeout=request.timeout_seconds or None,
    )


def default_renderer(request: RunRequest) -> Renderer:
    """Return a renderer bound to the request's ``sox`` settings."""

    def _render(
        path: Path,
        output_path: Path,
        axes: AxisResolution,
        window: Optional[TimeWindow],
    ) -> None:
        render_spectrogram(
            path,
            output_path,
            axes,
            window,
            sox_path=request.sox_path,
            window_function=request.window_function,
            timeout=request.timeout_seconds or None,
        )

    return _render


def execute_item(
    item: WorkItem,
    request: RunRequest,
    *,
    probe: DurationProbe,
    render: Renderer,
) -> ItemOutcome:
    """
    Plan and render a single item without touching shared counters.

    Per-item failures are folded into a failed :class:`ItemOutcome`; only
    unexpected exceptions escape.
    """

    logger = get_run_logger()
    try:
        if not item.path.is_file():
            raise MissingInputError(f"Input file is missing: {item.name}")
        plan = plan_item(item, request, probe)
    except (MissingInputError, DurationUnavailable) as exc:
        logger.warning("FAILED %s: %s", item.path, exc)
        return ItemOutcome(item=item, outcome=Outcome.FAILED, error=str(exc))

    if isinstance(plan, SkipPlan):
        logger.info("SKIPPED %s: outputs already exist", item.path)
        return ItemOutcome(item=item, outcome=Outcome.SKIPPED)

    if plan.adjusted:
        logger.info(
            "ADJUSTED %s: window %s+%s -> %s+%s (media %s)",
            item.path,
            to_display(request.window.start),
            to_display(request.window.duration),
            to_display(plan.window.start),
            to_display(plan.window.duration),
            to_display(plan.media_seconds),
        )

    try:
        item.output_dir.mkdir(parents=True, exist_ok=True)
        render(item.path, item.output_zoomed_path, request.axes, plan.window)
        render(item.path, item.output_full_path, request.full_axes, None)
    except (ItemError, OSError) as exc:
        logger.warning("FAILED %s: %s", item.path, exc)
        return ItemOutcome(
            item=item,
            outcome=Outcome.FAILED,
            adjusted=plan.adjusted,
            window=plan.window,
            error=str(exc),
        )

    logger.info("GENERATED %s -> %s", item.path, item.output_dir)
    return ItemOutcome(
        item=item,
        outcome=Outcome.GENERATED,
        adjusted=plan.adjusted,
        window=plan.window,
    )


def record_outcome(result: ItemOutcome, counters: OutcomeCounters) -> None:
    """Apply exactly one terminal increment plus the optional adjusted tally."""

    counters.increment(result.outcome)
    if result.adjusted:
        counters.increment(Outcome.ADJUSTED)


def _process_guarded(
    item: WorkItem,
    request: RunRequest,
    counters: OutcomeCounters,
    *,
    probe: DurationProbe,
    render: Renderer,
    stop: threading.Event,
) -> Optional[ItemOutcome]:
    if stop.is_set():
        return None
    try:
        result = execute_item(item, request, probe=probe, render=render)
    except Exception as exc:
        get_run_logger().exception("FAILED %s: unexpected error", item.path)
        result = ItemOutcome(item=item, outcome=Outcome.FAILED, error=str(exc) or type(exc).__name__)
    record_outcome(result, counters)
    return result


def run_batch(
    items: Sequence[WorkItem],
    request: RunRequest,
    counters: OutcomeCounters,
    *,
    probe: DurationProbe,
    render: Renderer,
    on_outcome: OutcomeCallback | None = None,
    cancel_event: threading.Event | None = None,
    started_at: float | None = None,
) -> RunSummary:
    """
    Process *items* on at most ``request.workers`` threads and wait for all of them.

    A freed worker picks up the next pending item immediately. Setting
    *cancel_event* stops admission: items not yet started are left untouched.

    Raises:
        RunCancelled: On ``KeyboardInterrupt``, after pending items are cancelled
            and in-flight items have finished.
    """

    start = time.perf_counter() if started_at is None else started_at
    stop = cancel_event or threading.Event()
    logger = get_run_logger()
    workers = max(1, int(request.workers))

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="specbatch")
    futures: Dict[Future[Optional[ItemOutcome]], WorkItem] = {}
    try:
        for item in items:
            futures[
                executor.submit(
                    _process_guarded,
                    item,
                    request,
                    counters,
                    probe=probe,
                    render=render,
                    stop=stop,
                )
            ] = item
        for future in as_completed(futures):
            result = future.result()
            if result is not None and on_outcome is not None:
                on_outcome(result)
    except KeyboardInterrupt:
        stop.set()
        logger.warning("Interrupted; cancelling pending items and waiting for in-flight work")
        executor.shutdown(wait=True, cancel_futures=True)
        summary = RunSummary.from_counters(
            len(items),
            counters.snapshot(),
            time.perf_counter() - start,
            cancelled=True,
        )
        raise RunCancelled("Run interrupted by user", summary) from None
    finally:
        executor.shutdown(wait=True)

    return RunSummary.from_counters(
        len(items),
        counters.snapshot(),
        time.perf_counter() - start,
        cancelled=stop.is_set(),
    )


def run_request(
    request: RunRequest,
    counters: OutcomeCounters | None = None,
    *,
    probe: DurationProbe | None = None,
    render: Renderer | None = None,
    on_discovered: Callable[[Sequence[WorkItem]], None] | None = None,
    on_outcome: OutcomeCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> RunSummary:
    """
    Run a whole request: discover, schedule, drain and summarise.

    A request that targets a single file skips discovery and the pool and is
    processed synchronously in the calling thread.

    Raises:
        DiscoveryError: If the input directory cannot be enumerated.
        RunCancelled: If the run is interrupted.
    """

    tally = counters if counters is not None else OutcomeCounters()
    probe_fn = probe if probe is not None else default_probe(request)
    render_fn = render if render is not None else default_renderer(request)

    with run_log(request.log_path, request.log_level) as logger:
        start = time.perf_counter()
        if request.single_file:
            item = WorkItem(path=request.root, output_dir_name=request.output_dir_name)
            items: Sequence[WorkItem] = [item]
            if on_discovered is not None:
                on_discovered(items)
            logger.info("Run started: 1 file (%s)", request.root)
            result = _process_guarded(
                item,
                request,
                tally,
                probe=probe_fn,
                render=render_fn,
                stop=cancel_event or threading.Event(),
            )
            if result is not None and on_outcome is not None:
                on_outcome(result)
            summary = RunSummary.from_counters(
                1,
                tally.snapshot(),
                time.perf_counter() - start,
                cancelled=result is None,
            )
        else:
            items = discover_items(
                request.root,
                recursive=request.recursive,
                extensions=request.extensions,
                output_dir_name=request.output_dir_name,
            )
            if on_discovered is not None:
                on_discovered(items)
            logger.info(
                "Run started: %d file(s) under %s (workers=%d, recursive=%s, force=%s)",
                len(items),
                request.root,
                request.workers,
                request.recursive,
                request.force,
            )
            summary = run_batch(
                items,
                request,
                tally,
                probe=probe_fn,
                render=render_fn,
                on_outcome=on_outcome,
                cancel_event=cancel_event,
                started_at=start,
            )

        logger.info(
            "Run finished: generated=%d skipped=%d failed=%d adjusted=%d elapsed=%.1fs",
            summary.generated,
            summary.skipped,
            summary.failed,
            summary.adjusted,
            summary.elapsed_seconds,
        )
    return summary
