from pydantic import BaseModel, Field, field_validator


class RoomBase(BaseModel):
    room_number: str = Field(min_length=1, max_length=100)
    capacity: int = Field(default=60, ge=1, le=1000)

    @field_validator("room_number")
    @classmethod
    def normalize_room_number(cls, value: str) -> str:
        room_number = " ".join(value.split()).upper()
        if room_number == "ONLINE":
            raise ValueError("Online sessions do not have a room")
        return room_number


class RoomCreate(RoomBase):
    pass


class RoomOut(RoomBase):
    id: str

    model_config = {"from_attributes": True}
