# clinic/schemas/common/common.py
from pydantic import BaseModel
from typing import Optional

class ErrorResponse(BaseModel):
    success: bool = False
    data: None = None
    error: str

class MessageResponse(BaseModel):
    success: bool = True
    message: str

class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: str
    database_error: Optional[str] = None
