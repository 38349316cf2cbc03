"""Event handlers for Orders domain events.

Push delivery happens outside this service; the handlers record the
hand-off of each notification to it.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCancelled,
    OrderClaimed,
    OrderPlaced,
    OrderStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderPlacedHandler(IEventHandler[OrderPlaced]):
    def handle(self, event: OrderPlaced) -> None:
        logger.info(
            "notification.order_placed",
            order_id=str(event.aggregate_id),
            recipient=event.customer_id,
        )


class OrderClaimedHandler(IEventHandler[OrderClaimed]):
    def handle(self, event: OrderClaimed) -> None:
        logger.info(
            "notification.order_claimed",
            order_id=str(event.aggregate_id),
            recipient=event.customer_id,
            deliverer_id=event.deliverer_id,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "notification.order_status_changed",
            order_id=str(event.aggregate_id),
            recipient=event.customer_id,
            old_status=event.old_status,
            new_status=event.new_status,
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        recipients = [event.customer_id]
        if event.previous_deliverer_id:
            recipients.append(event.previous_deliverer_id)
        logger.info(
            "notification.order_cancelled",
            order_id=str(event.aggregate_id),
            recipients=recipients,
            cancelled_by=event.cancelled_by,
            released_deliverer_id=event.previous_deliverer_id,
        )


order_placed_handler = OrderPlacedHandler()
order_claimed_handler = OrderClaimedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()
