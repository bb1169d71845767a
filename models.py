from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Booking(CamelModel):
    name: str
    email: str  # stored lowercase
    phone: str
    booked_at: str = Field(..., alias="bookedAt")  # ISO-8601 UTC


class ClassRecord(CamelModel):
    class_id: str = Field(..., alias="classId")
    class_name: Optional[str] = Field(None, alias="className")
    day: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    max_spots: int = Field(..., alias="maxSpots")
    bookings: List[Booking] = Field(default_factory=list)


class BookRequest(CamelModel):
    # Everything is optional here; required fields are checked by the service
    # so a missing field and an empty one are rejected the same way.
    # Numbers sent for text fields (e.g. a phone number) are kept as strings.
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    class_id: Optional[str] = Field(None, alias="classId")
    class_name: Optional[str] = Field(None, alias="className")
    day: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    max_spots: Optional[int] = Field(None, alias="maxSpots")
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class AvailabilityOut(CamelModel):
    class_id: str = Field(..., alias="classId")
    booked: int
    max_spots: int = Field(..., alias="maxSpots")
    available: int


class BookingConfirmation(CamelModel):
    message: str
    booked: int
    max_spots: int = Field(..., alias="maxSpots")


ClassRecords = Dict[str, ClassRecord]
