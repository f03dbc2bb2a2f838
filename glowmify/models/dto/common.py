from typing import Any, Literal

from pydantic import BaseModel


class StatusResponse(BaseModel):
    status: Literal["success", "error", "ok"]
    message: str
    data: Any = None
