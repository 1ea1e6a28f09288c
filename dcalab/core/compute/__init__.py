"""Background computation host exports."""

from dcalab.core.compute.host import (
    RollingAnalysisHost,
    RollingRequest,
    RollingResponse,
    execute_rolling_request,
)

__all__ = [
    "RollingAnalysisHost",
    "RollingRequest",
    "RollingResponse",
    "execute_rolling_request",
]
