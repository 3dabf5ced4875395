"""
Queue strategies using Strategy Pattern.
Allows switching between different queue backends (Redis Streams, In-Memory).
"""

import itertools
import logging
import socket
from abc import ABC, abstractmethod
from collections import deque
from typing import Dict, List, Optional

from pydantic import ValidationError
from redis.exceptions import RedisError

from .models import TrackingEvent, tracking_event_adapter

logger = logging.getLogger(__name__)


class QueueStrategy(ABC):
    """
    Abstract base class for queue strategies.

    This is the Strategy Pattern interface - allows multiple queue implementations
    without changing the producer/worker code.
    """

    @abstractmethod
    async def publish(self, queue_name: str, message: TrackingEvent) -> bool:
        """
        Publish an event to the queue.

        Args:
            queue_name: Name of the queue
            message: Tracking event to publish

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[TrackingEvent]:
        """
        Consume events from the queue.

        Args:
            queue_name: Name of the queue
            batch_size: Maximum number of events to retrieve
            block_time: Time to wait for events (milliseconds)

        Returns:
            List of tracking events
        """
        pass

    @abstractmethod
    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        """
        Acknowledge events (mark as processed).

        Args:
            queue_name: Name of the queue
            message_ids: List of message IDs to acknowledge

        Returns:
            True if successful
        """
        pass

    @abstractmethod
    async def get_queue_length(self, queue_name: str) -> int:
        """Get the number of events waiting in the queue"""
        pass

    async def consume_batch(self, queue_name: str, batch_size: int = 100, block_time: int = 1000) -> List[TrackingEvent]:
        """Consume a batch of events (alias for consume with larger default batch size)"""
        return await self.consume(queue_name, batch_size, block_time)


class RedisStreamQueue(QueueStrategy):
    """
    Redis Streams implementation for the event queue.

    How it works:
    1. Producer publishes events using XADD
    2. Worker reads events using XREADGROUP
    3. Worker acknowledges events using XACK
    4. Unacknowledged events stay pending and are delivered again:
       first this consumer's own pending list, then entries claimed
       with XAUTOCLAIM from consumers idle for claim_idle_ms,
       and only then new events
    """

    def __init__(
        self,
        redis_client,
        consumer_group: str = "counter_workers",
        consumer_name: Optional[str] = None,
        claim_idle_ms: int = 60000
    ):
        """
        Initialize Redis Streams queue.

        Args:
            redis_client: Redis client instance
            consumer_group: Name of consumer group for workers
            consumer_name: Stable consumer name; a restarted worker with the
                same name picks up its own pending events
            claim_idle_ms: Idle time after which another consumer's pending
                events are claimed
        """
        self.redis = redis_client
        self.consumer_group = consumer_group
        self.consumer_name = consumer_name or f"worker-{socket.gethostname()}"
        self.claim_idle_ms = claim_idle_ms
        self._initialized_streams = set()

    def _ensure_stream_exists(self, queue_name: str):
        """Create the stream and consumer group if they don't exist"""
        if queue_name in self._initialized_streams:
            return

        try:
            self.redis.xgroup_create(
                name=queue_name,
                groupname=self.consumer_group,
                id='0',
                mkstream=True
            )
            logger.info("✅ Created Redis stream: %s", queue_name)
        except RedisError as e:
            # Group might already exist, that's OK
            if "BUSYGROUP" not in str(e):
                raise

        self._initialized_streams.add(queue_name)

    async def publish(self, queue_name: str, message: TrackingEvent) -> bool:
        try:
            self._ensure_stream_exists(queue_name)
            self.redis.xadd(queue_name, {'data': message.model_dump_json()})
            return True

        except RedisError as e:
            logger.error("❌ Redis publish error: %s", e)
            return False

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[TrackingEvent]:
        """
        Consume events for this consumer group.
        Events stay pending until acknowledged.
        """
        self._ensure_stream_exists(queue_name)

        # '0' means "my pending messages", delivered before but never acked
        pending = self.redis.xreadgroup(
            groupname=self.consumer_group,
            consumername=self.consumer_name,
            streams={queue_name: '0'},
            count=batch_size
        )
        events = self._parse(queue_name, self._entries(pending))
        if events:
            logger.info("🔁 Redelivering %d pending events", len(events))
            return events

        claimed = self.redis.xautoclaim(
            queue_name,
            self.consumer_group,
            self.consumer_name,
            min_idle_time=self.claim_idle_ms,
            start_id='0-0',
            count=batch_size
        )
        events = self._parse(queue_name, claimed[1])
        if events:
            logger.info("🔁 Claimed %d events from idle consumers", len(events))
            return events

        # '>' means "messages never delivered to other consumers"
        messages = self.redis.xreadgroup(
            groupname=self.consumer_group,
            consumername=self.consumer_name,
            streams={queue_name: '>'},
            count=batch_size,
            block=block_time
        )
        return self._parse(queue_name, self._entries(messages))

    @staticmethod
    def _entries(response) -> list:
        if not response:
            return []
        return [entry for _stream_name, stream_messages in response for entry in stream_messages]

    def _parse(self, queue_name: str, entries) -> List[TrackingEvent]:
        events = []
        for message_id, message_data in entries:
            if message_id is None:
                continue
            if isinstance(message_id, bytes):
                message_id = message_id.decode('utf-8')
            try:
                if not message_data:
                    raise KeyError('data')
                event = tracking_event_adapter.validate_json(message_data[b'data'])
            except (KeyError, ValidationError) as e:
                # A malformed or trimmed event will never parse; ack it so it doesn't block the group
                logger.warning("⚠️  Dropping unparseable message %s: %s", message_id, e)
                self.redis.xack(queue_name, self.consumer_group, message_id)
                continue

            event.message_id = message_id
            events.append(event)

        return events

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        if not message_ids:
            return True

        try:
            self.redis.xack(queue_name, self.consumer_group, *message_ids)
            return True
        except RedisError as e:
            logger.error("❌ Redis ack error: %s", e)
            return False

    async def get_queue_length(self, queue_name: str) -> int:
        try:
            return self.redis.xlen(queue_name)
        except RedisError:
            return 0


class InMemoryQueue(QueueStrategy):
    """
    In-memory queue implementation using Python deque.

    Pros:
    - Simple (no external dependencies)
    - Fast (no network overhead)

    Cons:
    - Not persistent (lost on restart)
    - Not distributed (each process has its own queue)

    Consumed events stay pending until acknowledged and are handed out
    again, ahead of new events, by the next consume.

    Used in development/testing environments.
    """

    def __init__(self):
        self._queues: Dict[str, deque] = {}
        self._pending: Dict[str, Dict[str, TrackingEvent]] = {}
        self._next_id = itertools.count(1)

    def _get_queue(self, queue_name: str) -> deque:
        if queue_name not in self._queues:
            self._queues[queue_name] = deque()
            self._pending[queue_name] = {}
        return self._queues[queue_name]

    async def publish(self, queue_name: str, message: TrackingEvent) -> bool:
        if message.message_id is None:
            message = message.model_copy(update={"message_id": f"{next(self._next_id)}-0"})
        self._get_queue(queue_name).append(message)
        return True

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[TrackingEvent]:
        """
        Consume events from the in-memory queue.

        Note: block_time is ignored (no blocking in this simple implementation)
        """
        queue = self._get_queue(queue_name)
        pending = self._pending[queue_name]
        if pending:
            return list(pending.values())[:batch_size]

        events = [queue.popleft() for _ in range(min(batch_size, len(queue)))]
        for event in events:
            pending[event.message_id] = event
        return events

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        self._get_queue(queue_name)
        pending = self._pending[queue_name]
        for message_id in message_ids:
            pending.pop(message_id, None)
        return True

    async def get_queue_length(self, queue_name: str) -> int:
        """Events waiting for a first delivery"""
        return len(self._get_queue(queue_name))

    async def get_pending_count(self, queue_name: str) -> int:
        """Events delivered but not yet acknowledged"""
        self._get_queue(queue_name)
        return len(self._pending[queue_name])
