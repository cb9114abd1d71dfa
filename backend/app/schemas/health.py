"""Response schemas for operational endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)
    """Response for health check endpoint."""

    status: str = Field(description="Health status")
    service: str = Field(description="Service name")
    version: str = Field(description="API version")
    environment: str = Field(description="Environment name")
    database: str = Field(description="Database connectivity (ok/error)")
    timestamp: str = Field(description="UTC ISO8601Z timestamp of the health response")


class HealthLiteResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)
    """Response for lightweight health check endpoint."""

    status: str = Field(description="Health status (ok/error)")
