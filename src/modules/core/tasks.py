"""Asynchronous tasks of the core module."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

OUTBOX_BATCH_SIZE = 100
OUTBOX_MAX_RETRIES = 5


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size: int = OUTBOX_BATCH_SIZE) -> dict:
    """Drain pending outbox rows into the in-process event bus.

    Failed rows are retried on later runs until ``OUTBOX_MAX_RETRIES``.
    Rows whose event type has no subscriber are marked failed so they do
    not block the queue.
    """
    published = failed = 0

    with transaction.atomic():
        events = list(
            OutboxEvent.objects.select_for_update().publishable(OUTBOX_MAX_RETRIES)[:batch_size]
        )

        for outbox_event in events:
            log = logger.bind(
                outbox_id=str(outbox_event.id),
                event_type=outbox_event.event_type,
                aggregate_id=outbox_event.aggregate_id,
            )
            event_class = event_bus.event_class_for(outbox_event.event_type)
            if event_class is None:
                outbox_event.mark_as_failed("No subscriber for event type.")
                log.warning("outbox.unroutable")
                failed += 1
                continue
            try:
                event_bus.publish(event_class.from_payload(outbox_event.payload))
            except Exception as exc:
                outbox_event.mark_as_failed(str(exc))
                log.exception("outbox.publish_failed")
                failed += 1
                continue
            outbox_event.mark_as_published()
            published += 1

    logger.info("outbox.drained", published=published, failed=failed)
    return {"published": published, "failed": failed}


@shared_task(name="core.debug_task")
def debug_task() -> dict:
    """Smoke task for checking that a worker picks up jobs."""
    logger.info("celery.debug_task")
    return {"status": "ok", "message": "Celery is working"}
