from typing import Optional

from pydantic import BaseModel


class CounterResponse(BaseModel):
    count: int
    dayKey: Optional[str] = None
