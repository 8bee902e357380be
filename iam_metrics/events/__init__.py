"""Event-to-metric mapping: dispatch, label resolution and counting."""

from iam_metrics.events.aggregator import Aggregator
from iam_metrics.events.realms import RealmNameCache
from iam_metrics.events.recorder import MetricEventRecorder
from iam_metrics.events.routes import router
from iam_metrics.events.schemas import AdminEvent, EventType, OperationType, ResourceType, UserEvent

__all__ = [
    "AdminEvent",
    "Aggregator",
    "EventType",
    "MetricEventRecorder",
    "OperationType",
    "RealmNameCache",
    "ResourceType",
    "UserEvent",
    "router",
]
