"""
Benchmark Recorder

Queue + worker boundary between the live consensus path and benchmark
scoring. The live path only calls submit(), which never blocks and never
raises. The worker resolves ground truth, scores every vote and persists
the records; any failure there is logged and counted, nothing more.

Usage:
    recorder = BenchmarkRecorder(BenchmarkStore())
    recorder.start()                       # inside the running loop
    recorder.submit(BenchmarkJob(...))     # fire-and-forget
    await recorder.stop()                  # drains, then cancels the worker
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional

from benchmarks.scorer import (
    BenchmarkContext,
    resolve_ground_truth,
    score_all_votes,
    get_accuracy_summary,
)
from config.settings import BENCHMARKS, BenchmarkConfig
from consensus.models import StagedVotes, AuthorityData, ConsensusResult
from services.exceptions import GroundTruthUnavailable

logger = logging.getLogger(__name__)

DRAIN_TIMEOUT = 10.0


@dataclass
class BenchmarkJob:
    """Everything the worker needs to score one analysis"""
    analysis_id: str
    item_name: str
    votes: StagedVotes
    category: str = "general"
    category_confidence: Optional[float] = None
    consensus: Optional[ConsensusResult] = None
    authority: Optional[AuthorityData] = None
    market_summary: Optional[Dict[str, Any]] = None
    ground_truth_price: Optional[float] = None  # confirmed price supplied after the fact
    ground_truth_source: Optional[str] = None
    had_image: bool = False


def build_context(job: BenchmarkJob) -> BenchmarkContext:
    truth, source = job.ground_truth_price, job.ground_truth_source
    if truth is None:
        try:
            resolved = resolve_ground_truth(job.authority, job.market_summary, job.analysis_id)
            truth, source = resolved["price"], resolved["source"]
        except GroundTruthUnavailable:
            logger.debug(f"[BENCHMARK] {job.analysis_id}: no ground truth - partial scoring")
    elif source is None:
        source = "confirmed"

    consensus = job.consensus
    market = job.market_summary or {}
    return BenchmarkContext(
        analysis_id=job.analysis_id,
        item_name=job.item_name,
        detected_category=job.category,
        category_confidence=job.category_confidence,
        ground_truth_price=truth,
        ground_truth_source=source,
        authority_source=job.authority.source if job.authority else None,
        authority_price=job.authority.reference_price() if job.authority else None,
        market_median_price=market.get("median"),
        market_listing_count=market.get("sampleSize"),
        consensus_price=consensus.estimated_value if consensus else None,
        consensus_decision=consensus.decision.value if consensus else None,
        consensus_confidence=consensus.confidence if consensus else None,
        total_votes=consensus.total_votes if consensus else len(job.votes.flatten()),
        analysis_quality=consensus.analysis_quality.value if consensus else None,
        had_image=job.had_image,
    )


class BenchmarkRecorder:
    def __init__(self, store, config: BenchmarkConfig = None):
        self.store = store
        self.config = config or BENCHMARKS
        self.queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self.processed = 0
        self.failed = 0
        self.dropped = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the worker task. Must be called from inside the event loop."""
        if self.running:
            return
        self.queue = asyncio.Queue(maxsize=self.config.queue_size)
        self._worker = asyncio.create_task(self._run())
        logger.info(f"[BENCHMARK] Recorder started (queue size {self.config.queue_size})")

    def submit(self, job: BenchmarkJob) -> bool:
        """Enqueue a job. Returns False (and logs) instead of raising or blocking."""
        if not self.config.enabled:
            return False
        if self.queue is None or not self.running:
            self.dropped += 1
            logger.warning(f"[BENCHMARK] Recorder not running - dropped {job.analysis_id}")
            return False
        try:
            self.queue.put_nowait(job)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(f"[BENCHMARK] Queue full - dropped {job.analysis_id}")
            return False
        return True

    async def _run(self):
        while True:
            job = await self.queue.get()
            try:
                await self.process(job)
                self.processed += 1
            except Exception as e:
                self.failed += 1
                logger.error(f"[BENCHMARK] Failed to record {job.analysis_id}: {type(e).__name__}: {e}")
            finally:
                self.queue.task_done()

    async def process(self, job: BenchmarkJob) -> int:
        context = build_context(job)
        records = score_all_votes(job.votes, context, self.config)
        written = await asyncio.to_thread(self.store.save_records, records)

        summary = get_accuracy_summary(records, self.config)
        if summary["scoredCount"]:
            logger.info(
                f"[BENCHMARK] {job.analysis_id}: {written} records vs ${context.ground_truth_price:.2f} "
                f"({context.ground_truth_source}) - MAPE {summary['meanAbsolutePercentError']}%, "
                f"{summary['within10Percent']:.0%} within 10%"
            )
        else:
            logger.info(f"[BENCHMARK] {job.analysis_id}: {written} unscored records (no ground truth)")
        return written

    async def stop(self) -> None:
        """Drain pending jobs (bounded wait), then stop the worker"""
        if not self.running:
            return
        try:
            await asyncio.wait_for(self.queue.join(), timeout=DRAIN_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning(f"[BENCHMARK] Drain timed out with {self.queue.qsize()} jobs pending")
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        logger.info(f"[BENCHMARK] Recorder stopped ({self.processed} processed, {self.failed} failed)")

    def get_stats(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "pending": self.queue.qsize() if self.queue else 0,
            "processed": self.processed,
            "failed": self.failed,
            "dropped": self.dropped,
        }
