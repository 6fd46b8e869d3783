from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

# Base: forbid unknown keys across all payloads
class StrictModel(BaseModel):
    model_config = ConfigDict(extra='forbid')

# --- /server_temp ---
class ServerTempOut(StrictModel):
    temperature: Optional[float] = None
    unit: str = "C"
    error: Optional[str] = None
    timestamp: Optional[int] = Field(
        default=None,
        description="Epoch milliseconds of the last cycle; null before the first one."
    )
    model_config = ConfigDict(json_schema_extra={
        "example": {
            "temperature": 45.6,
            "unit": "C",
            "error": None,
            "timestamp": 1760832000000
        }
    })

class UnauthorisedOut(StrictModel):
    error: str = "Unauthorised"

# --- diagnostics ---
class SystemStatus(StrictModel):
    service_uptime_s: int
    scheduler_state: str
    probes: List[str] = Field(default_factory=list)
    working_method: Optional[str] = None
    failed_methods: List[str] = Field(default_factory=list)
    update_interval_s: float
    last_reading_iso: Optional[str] = None
