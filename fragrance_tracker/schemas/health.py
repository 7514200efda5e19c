"""
Fragrance Tracker Backend: Health Schema
=========================================
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and container probes.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    scheduler: str = Field(description="Sweep scheduler: running, stopped, disabled")
    uptime_seconds: float = Field(description="Seconds since service started")
