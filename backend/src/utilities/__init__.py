from .constants import (
    EVENTS_ENDPOINT,
    EVENTS_TOPIC,
    HISTORY_SIZE,
    REPLAY_INTERVAL,
    SIGNATURE_HEADER,
    SSE_ENDPOINT,
    SUBSCRIBE_MODE,
    SUBSCRIBER_QUEUE_SIZE,
)
from .logging import get_logger, setup_logging
from .settings import Settings
from .signature import compute_signature, verify_signature
from .utility_functions import canonical_payload, check_handshake, make_ack, make_sse_frame, now_ts
