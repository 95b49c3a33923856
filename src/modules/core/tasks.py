"""Celery tasks for the core module.

``publish_outbox_events`` is the outbox relay: it reads pending
``OutboxEvent`` rows, rebuilds the domain event and hands it to the
in-process event bus.
"""

from __future__ import annotations

import structlog
from celery import shared_task
from django.conf import settings
from django.db import transaction

from modules.core.models import EventStatus, OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size: int | None = None) -> dict[str, int]:
    """Relay up to *batch_size* pending outbox events to the event bus.

    Each event is published in its own transaction so one failing handler
    does not block the rest of the batch.  Events that exhausted
    ``OUTBOX_MAX_RETRIES`` are left as FAILED.
    """
    limit = batch_size or settings.OUTBOX_BATCH_SIZE
    max_retries = settings.OUTBOX_MAX_RETRIES
    published = failed = 0

    candidates = list(
        OutboxEvent.objects.pending()
        .filter(retry_count__lt=max_retries)
        .values_list("id", flat=True)[:limit]
    )
    for event_id in candidates:
        with transaction.atomic():
            outbox_event = (
                OutboxEvent.objects.select_for_update().filter(id=event_id).first()
            )
            if outbox_event is None or outbox_event.status == EventStatus.PUBLISHED:
                continue
            log = logger.bind(
                outbox_id=str(outbox_event.id),
                event_type=outbox_event.event_type,
                aggregate_id=outbox_event.aggregate_id,
            )
            try:
                event = DomainEvent.from_payload(
                    outbox_event.event_type, outbox_event.payload
                )
                event_bus.publish(event)
            except Exception as exc:  # noqa: BLE001 - recorded on the row
                outbox_event.mark_as_failed(str(exc))
                log.warning("outbox.publish_failed", error=str(exc))
                failed += 1
                continue
            outbox_event.mark_as_published()
            log.info("outbox.published")
            published += 1

    logger.info("outbox.relay_completed", published=published, failed=failed)
    return {"published": published, "failed": failed}
