import asyncio, logging
from typing import Awaitable, Callable, Dict, Optional, Set
import aiohttp

from .models import ConfigError, ProbeOutcome, ScanStats, ScanTarget
from .wordlists import candidate_count, iter_candidates
from . import analyzer

log = logging.getLogger("dirprobe.scanner")

OutcomeCb = Callable[[ProbeOutcome], Awaitable[None]]

TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)


class Prober:
    """HEAD-probes single URLs over one pooled aiohttp session."""

    def __init__(self, target: ScanTarget):
        self.headers: Dict[str, str] = dict(target.headers)
        self.follow_redirects = target.follow_redirects
        self.timeout = aiohttp.ClientTimeout(total=target.timeout_seconds)
        self.verify_tls = target.verify_tls
        self.limit = target.concurrency
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "Prober":
        connector = aiohttp.TCPConnector(limit=self.limit, ssl=self.verify_tls)
        self._session = aiohttp.ClientSession(connector=connector, timeout=self.timeout)
        return self

    async def __aexit__(self, *exc) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def probe(self, url: str) -> ProbeOutcome:
        try:
            async with self._session.head(
                url, headers=self.headers, allow_redirects=self.follow_redirects
            ) as r:
                return ProbeOutcome(url=url, status=r.status)
        except TRANSPORT_ERRORS as e:
            return ProbeOutcome(url=url, error=str(e) or e.__class__.__name__)


class ProbeScheduler:
    def __init__(self, target: ScanTarget, prober=None):
        self.target = target
        self.prober = prober
        self.stats = ScanStats()

    def _report(self, outcome: ProbeOutcome) -> None:
        if outcome.failed:
            self.stats.failed += 1
            log.warning("error accessing url %s: %s", outcome.url, outcome.error)
        elif outcome.matched:
            self.stats.matched += 1
            log.info("%s : %d", outcome.url, outcome.status)
        else:
            self.stats.skipped += 1
            log.debug("%s : %d (%s)", outcome.url, outcome.status, analyzer.describe_status(outcome.status))

    async def _work(self, prober, url: str, sem: asyncio.Semaphore, on_outcome: Optional[OutcomeCb]) -> None:
        try:
            try:
                outcome = await prober.probe(url)
            except Exception as e:
                log.exception("Unexpected failure probing %s", url)
                outcome = ProbeOutcome(url=url, error=repr(e))
            self._report(outcome)
            if on_outcome is not None:
                try:
                    await on_outcome(outcome)
                except Exception:
                    log.exception("Outcome callback failed for %s", url)
        finally:
            sem.release()

    async def _dispatch(self, prober, on_outcome: Optional[OutcomeCb]) -> None:
        sem = asyncio.Semaphore(self.target.concurrency)
        pending: Set[asyncio.Task] = set()
        try:
            for cand in iter_candidates(self.target):
                if self.stats.total % len(self.target.words) == 0:
                    log.info("Test extension: %s", cand.extension)
                await sem.acquire()
                self.stats.total += 1
                task = asyncio.create_task(self._work(prober, cand.url, sem, on_outcome))
                pending.add(task)
                task.add_done_callback(pending.discard)
            # barrier: every dispatched probe finishes before we return
            if pending:
                await asyncio.gather(*pending)
        except asyncio.CancelledError:
            # in-flight probes must not outlive the session
            for task in list(pending):
                task.cancel()
            raise

    async def run(self, on_outcome: Optional[OutcomeCb] = None) -> ScanStats:
        if self.target.concurrency < 1:
            raise ConfigError(f"invalid concurrency {self.target.concurrency}, must be at least 1")
        self.stats = ScanStats()
        log.info("Probing %d candidates against %s", candidate_count(self.target), self.target.base_url)
        if self.prober is not None:
            await self._dispatch(self.prober, on_outcome)
        else:
            async with Prober(self.target) as prober:
                await self._dispatch(prober, on_outcome)
        log.info(
            "Scan done: tested=%d matched=%d failed=%d",
            self.stats.total, self.stats.matched, self.stats.failed,
        )
        return self.stats

