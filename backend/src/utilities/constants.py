# ------------ Config ------------
HISTORY_SIZE = 1000           # last N events kept for replay
REPLAY_INTERVAL = 0.15        # seconds between replayed events
SUBSCRIBER_QUEUE_SIZE = 100   # bounded per-subscriber queue
# --------------------------------

# ------------ Protocol ------------
EVENTS_TOPIC = "events"
SUBSCRIBE_MODE = "subscribe"
SIGNATURE_HEADER = "x-hub-signature"
SIGNATURE_PREFIX = "sha1="

SSE_ENDPOINT = "/sse"
EVENTS_ENDPOINT = "/events"
# ----------------------------------
