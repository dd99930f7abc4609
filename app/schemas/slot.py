from datetime import datetime

from pydantic import BaseModel


class SlotResponse(BaseModel):
    start: datetime
    end: datetime
    resource_id: int

    model_config = {"from_attributes": True}
