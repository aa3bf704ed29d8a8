from .history import EventHistory
from .models import DeliveryStatus, Event, Subscriber
from .registry import SubscriberRegistry
from .relay import EventRelay
from .replay import ReplayScheduler
