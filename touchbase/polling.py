"""
Call-status polling.

After a call is triggered, its status is queried immediately and then on a
fixed interval until it reaches a terminal state. A tick is skipped while
the previous query is still in flight, so a slow provider never sees
overlapping requests for the same call.

Failure policy:
- a non-success response from the status query (UpstreamError and other
  TouchbaseErrors) is a hard failure: the call is marked failed and polling
  stops
- a transport error is transient: it is recorded on the CallRecord and the
  next tick runs as scheduled
- any other exception from the query also marks the call failed
"""

import asyncio
from typing import Awaitable, Callable

import structlog

from touchbase.errors import TouchbaseError, TransportError
from touchbase.models import CallRecord, LocalCallStatus, ProviderCallStatus
from touchbase.vapi.service import CallStatusReport

logger = structlog.get_logger()

DEFAULT_POLL_INTERVAL_SECONDS = 3.0

_PROVIDER_TO_LOCAL = {
    ProviderCallStatus.SCHEDULED.value: LocalCallStatus.PREPARING,
    ProviderCallStatus.RINGING.value: LocalCallStatus.CALLING,
    ProviderCallStatus.IN_PROGRESS.value: LocalCallStatus.IN_PROGRESS,
    ProviderCallStatus.COMPLETED.value: LocalCallStatus.COMPLETED,
    ProviderCallStatus.FAILED.value: LocalCallStatus.FAILED,
}

StatusFetcher = Callable[[str], Awaitable[CallStatusReport]]
RecordCallback = Callable[[CallRecord], None]


def map_provider_status(status: str | None) -> LocalCallStatus:
    """Map a provider status to the local status; unmapped values are UNKNOWN."""
    if status is None:
        return LocalCallStatus.UNKNOWN
    return _PROVIDER_TO_LOCAL.get(status, LocalCallStatus.UNKNOWN)


def initial_status(call_id: str | None) -> LocalCallStatus:
    return LocalCallStatus.LOADING if call_id else LocalCallStatus.PREPARING


class CallStatusPoller:
    """
    Polls one call at a time.

    ``start()`` with a new call ID cancels any polling for the previous one.
    ``on_update`` runs after every query; ``on_complete`` runs at most once
    per call ID, when the call completes with a non-empty summary.
    """

    def __init__(
        self,
        fetch_status: StatusFetcher,
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        on_update: RecordCallback | None = None,
        on_complete: RecordCallback | None = None,
    ):
        self.fetch_status = fetch_status
        self.interval = interval
        self.on_update = on_update
        self.on_complete = on_complete

        self.record: CallRecord | None = None
        self._notified: set[str] = set()
        self._loop_task: asyncio.Task | None = None
        self._in_flight: asyncio.Task | None = None
        self._finished = asyncio.Event()

    @property
    def call_id(self) -> str | None:
        return self.record.call_id if self.record else None

    @property
    def status(self) -> LocalCallStatus:
        if self.record is None:
            return initial_status(None)
        return self.record.status

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self, call_id: str) -> None:
        """Begin polling ``call_id``, replacing whatever was being polled."""
        self._cancel_tasks()

        self.record = CallRecord(call_id=call_id, status=initial_status(call_id))
        self._finished = asyncio.Event()
        self._loop_task = asyncio.create_task(self._run(call_id, self._finished))

        logger.info("Polling call status", call_id=call_id, interval=self.interval)

    async def stop(self) -> None:
        """Cancel polling and wait for the tasks to unwind."""
        tasks = [t for t in (self._loop_task, self._in_flight) if t is not None]
        self._cancel_tasks()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error("Poll task failed", call_id=self.call_id, error=str(result))

    async def wait(self) -> CallRecord | None:
        """Wait until polling ends (terminal state or stop) and return the record."""
        if self._loop_task is not None:
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
        return self.record

    def _cancel_tasks(self) -> None:
        for task in (self._loop_task, self._in_flight):
            if task is not None and not task.done():
                task.cancel()
        self._loop_task = None
        self._in_flight = None

    async def _run(self, call_id: str, finished: asyncio.Event) -> None:
        while not finished.is_set():
            if self._in_flight is None or self._in_flight.done():
                self._in_flight = asyncio.create_task(self._tick(call_id, finished))
            else:
                logger.debug("Skipping poll, previous query in flight", call_id=call_id)

            try:
                await asyncio.wait_for(finished.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue

        logger.info("Stopped polling call status", call_id=call_id, status=self.status.value)

    async def _tick(self, call_id: str, finished: asyncio.Event) -> None:
        try:
            report = await self.fetch_status(call_id)
        except TransportError as e:
            if self._is_current(finished):
                logger.warning("Transient call status error", call_id=call_id, error=e.message)
                self._update(error=e.message)
            return
        except TouchbaseError as e:
            if self._is_current(finished):
                logger.error("Call status query failed", call_id=call_id, error=e.message)
                self._update(status=LocalCallStatus.FAILED, error=e.message)
                finished.set()
            return
        except Exception as e:
            if self._is_current(finished):
                logger.exception("Call status query crashed", call_id=call_id, error=str(e))
                self._update(status=LocalCallStatus.FAILED, error=str(e))
                finished.set()
            return

        if not self._is_current(finished):
            return

        status = map_provider_status(report.status)
        self._update(
            status=status,
            summary=report.summary,
            recording_url=report.recording_url,
            error=None,
        )

        record = self.record
        if (
            status is LocalCallStatus.COMPLETED
            and record.summary
            and call_id not in self._notified
        ):
            self._notified.add(call_id)
            logger.info("Call completed", call_id=call_id)
            if self.on_complete:
                self.on_complete(record)

        if status.is_terminal:
            finished.set()

    def _is_current(self, finished: asyncio.Event) -> bool:
        # Each start() gets its own event, so a tick left over from an earlier
        # run of the same call ID is not current.
        return finished is self._finished

    def _update(self, **changes) -> None:
        for field in ("summary", "recording_url"):
            if field in changes and changes[field] is None:
                changes.pop(field)
        self.record = self.record.model_copy(update=changes)
        if self.on_update:
            self.on_update(self.record)
