from pydantic import BaseModel


class WebhookAck(BaseModel):
    isSuccessful: bool = True


class HealthResponse(BaseModel):
    uptime_sec: int
    subscribers: int
    history: int


class StatsResponse(BaseModel):
    messages: int
    dropped: int
    subscribers: int
    history: int
    history_size: int
