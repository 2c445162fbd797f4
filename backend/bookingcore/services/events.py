"""
backend/bookingcore/services/events.py

Event emitter: pushes booking events to a Redis queue for the
notification / payment / calendar-sync consumers.

Queue:
- events:p2p: instant delivery (booking_created, booking_confirmed, booking_cancelled)

Emission happens after commit. A failed push is logged and never
undoes a committed booking.
"""

import json
import time
import logging

from redis.exceptions import RedisError

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit a p2p event (instant delivery).

    Pushed to Redis list `events:p2p` for the consumer loop.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(P2P_QUEUE, json.dumps(event))
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
    except RedisError as e:
        logger.error(f"Failed to emit event {event_type}: {e}")


def booking_event_payload(booking) -> dict:
    """Stable identity + committed time window of a booking."""
    return {
        "booking_id": booking.id,
        "tenant_id": booking.tenant_id,
        "service_id": booking.service_id,
        "date": booking.booking_date,
        "time": booking.booking_time,
        "duration_minutes": booking.duration_minutes,
        "status": booking.status,
    }
