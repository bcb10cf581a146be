from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from gridsched.api.deps import get_db
from gridsched.models.room import Room
from gridsched.schemas.room import RoomCreate, RoomOut

router = APIRouter()


@router.get("/", response_model=list[RoomOut])
def list_rooms(db: Session = Depends(get_db)) -> list[RoomOut]:
    return list(db.execute(select(Room).order_by(Room.room_number.asc())).scalars())


@router.post("/", response_model=RoomOut, status_code=status.HTTP_201_CREATED)
def create_room(payload: RoomCreate, db: Session = Depends(get_db)) -> RoomOut:
    existing = db.execute(select(Room).where(Room.room_number == payload.room_number)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Room number already exists")
    room = Room(**payload.model_dump())
    db.add(room)
    db.commit()
    db.refresh(room)
    return room
