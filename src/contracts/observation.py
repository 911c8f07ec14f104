from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    TRANSPORT_ERROR = "transport_error"


class ObservationOutcome(BaseModel):
    """
    Result of executing one probe against one host.

    A response with any status code, including 4xx and 5xx, is a normal observation.
    Only a request that produced no response at all carries an error.
    """

    endpoint: str
    host: str
    status_code: Optional[int] = None
    latency_ms: int = Field(ge=0)
    error: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def server_error(self) -> bool:
        return self.status_code is not None and self.status_code >= 500


class PassResult(BaseModel):
    """
    Pass-scoped state: how many observations one pass recorded and whether any step failed.
    """

    observations: int = 0
    had_error: bool = False

    @property
    def exit_code(self) -> int:
        return 1 if self.had_error else 0
