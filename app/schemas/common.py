from typing import Optional
from pydantic import BaseModel

class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None

class HealthResponse(BaseModel):
    ok: bool = True
    env: str
