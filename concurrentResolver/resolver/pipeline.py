"""Concurrent resolution pipeline: producer, worker pool and collector."""
from __future__ import annotations

import asyncio
import time
from typing import Iterable, List, Optional, Protocol

from concurrentResolver.logging_config import get_logger
from concurrentResolver.resolver.extract import extract_domain
from concurrentResolver.resolver.models import PipelineStats, ResolutionOutcome
from concurrentResolver.resolver.output import ResultCollector

logger = get_logger("pipeline")

# Queue close marker; each worker consumes exactly one from the work queue
CLOSED = object()


class Resolver(Protocol):
    async def resolve(self, domain: str) -> Optional[str]:
        ...


class _Producer:
    def __init__(self, lines: Iterable[str], jobs: asyncio.Queue, workers: int) -> None:
        self.lines = lines
        self.jobs = jobs
        self.workers = workers
        self.count = 0
        self.error: Optional[BaseException] = None

    async def run(self) -> None:
        try:
            # Input is read synchronously on the loop; local file reads are short
            for line in self.lines:
                await self.jobs.put(line.strip())
                self.count += 1
        except Exception as exc:
            self.error = exc
            logger.error(
                f"Error reading input: {exc}",
                exc_info=True,
                extra={"lines_read": self.count, "outcome": "error", "error_type": type(exc).__name__},
            )
        # Closed only on completion; a cancelled producer leaves the queue as is
        for _ in range(self.workers):
            await self.jobs.put(CLOSED)


async def resolve_line(line: str, resolver: Resolver) -> ResolutionOutcome:
    domain = extract_domain(line)
    ip = await resolver.resolve(domain)
    return ResolutionOutcome(input=line, domain=domain, ip=ip)


async def _worker(worker_id: int, jobs: asyncio.Queue, results: asyncio.Queue, resolver: Resolver) -> None:
    while True:
        line = await jobs.get()
        if line is CLOSED:
            return
        try:
            outcome = await resolve_line(line, resolver)
        except Exception as exc:
            logger.error(
                f"Unexpected error resolving line: {exc}",
                exc_info=True,
                extra={"worker_id": worker_id, "input": line, "outcome": "error", "error_type": type(exc).__name__},
            )
            outcome = ResolutionOutcome(input=line, domain=extract_domain(line), ip=None)
        await results.put(outcome)


async def _close_when_done(workers: List[asyncio.Task], results: asyncio.Queue) -> None:
    await asyncio.gather(*workers)
    await results.put(CLOSED)


async def run_pipeline(
    lines: Iterable[str],
    resolver: Resolver,
    collector: ResultCollector,
    concurrency: int = 100,
) -> PipelineStats:
    """Resolve every line with `concurrency` workers and feed outcomes to `collector`.

    Outcomes reach the collector in lookup completion order. Returns once the
    result queue has been closed and drained.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")

    start_time = time.time()
    jobs: asyncio.Queue = asyncio.Queue(maxsize=concurrency)
    results: asyncio.Queue = asyncio.Queue(maxsize=concurrency)

    logger.info(
        "Starting resolution pipeline",
        extra={"action": "pipeline_start", "concurrency": concurrency, "mode": collector.mode},
    )

    producer = _Producer(lines, jobs, concurrency)
    workers = [
        asyncio.create_task(_worker(i, jobs, results, resolver), name=f"resolver-worker-{i}")
        for i in range(concurrency)
    ]
    tasks = [
        asyncio.create_task(producer.run(), name="resolver-producer"),
        asyncio.create_task(_close_when_done(workers, results), name="resolver-supervisor"),
        *workers,
    ]

    try:
        await collector.consume(results, CLOSED)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    stats = PipelineStats(
        lines_read=producer.count,
        outcomes=collector.received,
        resolved=collector.resolved,
        unresolved=collector.received - collector.resolved,
        emitted=collector.emitted,
        unique_ips=collector.unique_ips,
        elapsed_seconds=round(time.time() - start_time, 3),
        read_error=str(producer.error) if producer.error else None,
    )

    logger.info(
        "Resolution pipeline completed",
        extra={"action": "pipeline_complete", "outcome": "success", **stats.model_dump(exclude={"read_error"})},
    )
    return stats
