"""Periodic sweep closing every active auction whose deadline has passed.

``AuctionSweeper`` owns one daemon thread. ``start()`` sweeps immediately and
then once per interval; ``stop()`` ends the loop; ``run_once()`` performs a
sweep in the caller's thread (tests, scripts). Sweeps never overlap: the next
wait only begins once the previous sweep has returned.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from fantasta.core.clock import utcnow
from fantasta.core.config import settings
from fantasta.core.errors import AuctionNotActive
from fantasta.db.session import SessionLocal
from fantasta.services.auction_state import CloseSummary
from fantasta.services.auctions import expired_active_auction_ids
from fantasta.services.closer import close_auction

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


@dataclass
class SweepReport:
    started_at: datetime
    closed: List[CloseSummary] = field(default_factory=list)
    already_closed: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    @property
    def expired_found(self) -> int:
        return len(self.closed) + len(self.already_closed) + len(self.failed)


def sweep_expired_auctions(session_factory: SessionFactory = SessionLocal, now: Optional[datetime] = None) -> SweepReport:
    if now is None:
        now = utcnow()
    report = SweepReport(started_at=now)

    db = session_factory()
    try:
        auction_ids = expired_active_auction_ids(db, now=now)
    finally:
        db.close()

    if not auction_ids:
        logger.debug("no expired auctions")
        return report

    logger.info("found %s expired auctions", len(auction_ids))

    # one session per auction: a failed close cannot poison the next one
    for auction_id in auction_ids:
        db = session_factory()
        try:
            report.closed.append(close_auction(db, auction_id))
        except AuctionNotActive:
            # closed by a manual trigger in the meantime
            logger.info("auction %s was already closed", auction_id)
            report.already_closed.append(auction_id)
        except Exception:
            # stays active, retried on the next tick
            logger.exception("failed to close auction %s", auction_id)
            report.failed.append(auction_id)
        finally:
            db.close()

    return report


class AuctionSweeper:
    def __init__(
        self,
        session_factory: SessionFactory = SessionLocal,
        interval_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.interval_seconds = (
            settings.AUCTION_SWEEP_INTERVAL_SECONDS if interval_seconds is None else interval_seconds
        )
        self.clock = clock
        self.last_report: Optional[SweepReport] = None
        self.sweeps_run = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> SweepReport:
        report = sweep_expired_auctions(self.session_factory, now=self.clock())
        self.last_report = report
        self.sweeps_run += 1
        return report

    def _tick(self) -> None:
        try:
            self.run_once()
        except Exception:
            # e.g. database unreachable for the initial query; keep ticking
            logger.exception("auction sweep failed")

    def _loop(self) -> None:
        self._tick()
        while not self._stop.wait(self.interval_seconds):
            self._tick()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="auction-sweeper", daemon=True)
        self._thread.start()
        logger.info("auction sweeper started (every %s seconds)", self.interval_seconds)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("auction sweeper stopped")
