from .schemas import HealthResponse, StatsResponse, WebhookAck
