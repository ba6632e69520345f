from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import datetime
from typing import Optional


class AppointmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def check_time_range(self):
        if self.end <= self.start:
            raise ValueError("Appointment end must be after its start")
        return self


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    start: datetime
    end: datetime
