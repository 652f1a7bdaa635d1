from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

U64_LIMIT = 2**64


class LivenessAssertion(BaseModel):
    """Wire body of ``POST /heartbeat``."""

    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(..., ge=0, lt=U64_LIMIT, strict=True)
    signature: Optional[list[str]] = None
