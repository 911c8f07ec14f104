from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProbeDefinition(BaseModel):
    """
    Data model describing one read probe: an HTTP request sent purely for measurement.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str
    method: str = "GET"
    queries: Dict[str, str] = Field(default_factory=dict)
    body: bytes = b""

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    @field_validator("endpoint")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"endpoint must start with '/': {value!r}")
        return value


class Target(BaseModel):
    """
    Data model representing one probed service and the base URL it is reached at.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    url: str

    def __repr__(self):
        return f"Target(name={self.name}, url={self.url})"
