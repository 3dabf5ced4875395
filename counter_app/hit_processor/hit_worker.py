"""
Ingest Worker

This worker drains tracking events from the queue and applies them to the
site counter.

Architecture:
- Consumes events from queue in batches
- Pageviews -> counter store, visit pings -> activity log,
  visitor pings -> unique visitor log
- Acknowledges each event once it was applied; events after a storage
  failure stay pending and are redelivered on the next consume
- Events that can never apply (bad zone, naive timestamps) are dropped
  and logged instead of blocking the queue
"""

import asyncio
import logging
import signal
import sys
from typing import List, Optional

from pydantic import ValidationError

from counter_app.config import settings
from counter_app.errors import InvalidArgument
from counter_app.queue.models import PageviewEvent, TrackingEvent, VisitEvent, VisitorEvent
from counter_app.queue.strategies import QueueStrategy
from counter_app.schemas.site import SiteRef
from counter_app.services.counter_service import SiteCounterService

logger = logging.getLogger(__name__)


class IngestWorker:
    """
    Queue consumer feeding SiteCounterService.

    Delivery is at-least-once: events are acknowledged one by one as they
    apply, so when a batch fails part way only the failing event and the
    ones after it are redelivered by the queue.
    """

    def __init__(
        self,
        queue: QueueStrategy,
        service: SiteCounterService,
        queue_name: Optional[str] = None,
        batch_size: Optional[int] = None,
        block_time: Optional[int] = None,
        idle_sleep: float = 0.1
    ):
        """
        Initialize worker with dependencies.

        Args:
            queue: Queue strategy for consuming events
            service: Counter service the events are applied to
            queue_name: Queue to read (default from settings)
            batch_size: Events per consume (default from settings)
            block_time: Consume wait in milliseconds (default from settings)
            idle_sleep: Pause in seconds after an empty consume
        """
        self.queue = queue
        self.service = service
        self.queue_name = queue_name or settings.queue_name
        self.batch_size = batch_size or settings.queue_batch_size
        self.block_time = settings.queue_block_ms if block_time is None else block_time
        self.idle_sleep = idle_sleep

        self.running = False
        self.processed_count = 0
        self.dropped_count = 0

    async def start(self):
        """Start the worker loop"""
        self.running = True
        logger.info("🚀 Ingest worker started (queue=%s, batch size=%d)", self.queue_name, self.batch_size)

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        while self.running:
            try:
                handled = await self.run_once()
                if not handled:
                    await asyncio.sleep(self.idle_sleep)

            except asyncio.CancelledError:
                logger.info("Worker task cancelled.")
                break
            except Exception:
                # Unapplied events stay pending and will be redelivered
                logger.exception("❌ Batch processing failed")
                await asyncio.sleep(1)

        logger.info("🛑 Ingest worker stopped")

    async def run_once(self) -> int:
        """
        Consume, apply and acknowledge one batch.

        Returns:
            Number of events consumed (0 when the queue was empty)
        """
        messages = await self.queue.consume_batch(
            queue_name=self.queue_name,
            batch_size=self.batch_size,
            block_time=self.block_time
        )
        if not messages:
            return 0

        done: List[TrackingEvent] = []
        try:
            self._process_batch(messages, done)
        finally:
            # ONLY acknowledge what was applied (or dropped); the rest is redelivered
            message_ids = [msg.message_id for msg in done if msg.message_id]
            if message_ids:
                await self.queue.ack(self.queue_name, message_ids)
            self.processed_count += len(done)

        logger.info("✅ Processed %d events. Total: %d", len(done), self.processed_count)
        return len(messages)

    def _process_batch(self, messages: List[TrackingEvent], done: List[TrackingEvent]):
        """
        Apply every event in the batch, appending each finished one to done.

        Invalid events are dropped; storage errors propagate and leave the
        failing event and everything after it unacknowledged.
        """
        for event in messages:
            try:
                self._apply(event)
            except (InvalidArgument, ValidationError) as e:
                self.dropped_count += 1
                logger.warning("⚠️  Dropping %s event for site %s: %s", event.kind, event.site_id, e)
            done.append(event)

    def _apply(self, event: TrackingEvent):
        if isinstance(event, PageviewEvent):
            site = SiteRef(site_id=event.site_id, time_zone=event.time_zone)
            self.service.increment_pageview(site, event.timestamp)
        elif isinstance(event, VisitEvent):
            self.service.record_visit(event.site_id, event.timestamp)
        elif isinstance(event, VisitorEvent):
            self.service.record_visitor(event.site_id, event.visitor_id, event.date)
        else:
            raise InvalidArgument(f"Unknown event type: {type(event).__name__}")

    def _signal_handler(self, signum, frame):
        """Handle signals for graceful shutdown"""
        logger.info("Received signal %s. Shutting down gracefully...", signum)
        self.stop()

    def stop(self):
        """Stop the worker"""
        self.running = False


async def main():
    """
    Main entry point for the ingest worker.

    Usage:
        python -m counter_app.hit_processor.hit_worker
    """
    from counter_app.dependencies import get_counter_service, get_queue
    from counter_app.log_config import configure_logging

    configure_logging()
    logger.info("🔧 %s %s - Ingest Worker", settings.app_name, settings.app_version)
    logger.info("Environment: %s", settings.environment)
    logger.info("Queue backend: %s", settings.queue_backend)
    logger.info("Storage backend: %s", settings.storage_backend)

    worker = IngestWorker(queue=get_queue(), service=get_counter_service())

    try:
        await worker.start()
    except KeyboardInterrupt:
        logger.info("⚠️  Interrupted by user")
    except Exception:
        logger.exception("❌ Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
