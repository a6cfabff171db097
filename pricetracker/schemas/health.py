"""Health check schemas."""

from typing import Dict, Optional

from pydantic import BaseModel


class HealthCheckResponse(BaseModel):
    """Service health, including whether the upstream API keys are configured."""

    status: str
    environment: str
    database: str
    redis: Optional[str] = None
    credentials: Dict[str, bool] = {}
