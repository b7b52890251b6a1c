from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from vivaplan.api.deps import get_current_user, get_db, require_roles
from vivaplan.core.exceptions import ResourceNotFoundError
from vivaplan.models.user import User, UserRole
from vivaplan.models.venue import Venue
from vivaplan.schemas.directory import VenueCreate, VenueOut

router = APIRouter()


@router.get("/", response_model=list[VenueOut])
def list_venues(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[VenueOut]:
    return list(db.execute(select(Venue).order_by(Venue.venue_code)).scalars())


@router.post("/", response_model=VenueOut, status_code=status.HTTP_201_CREATED)
def create_venue(
    payload: VenueCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> VenueOut:
    existing = db.execute(select(Venue).where(Venue.venue_code == payload.venue_id)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Venue ID already exists")
    venue = Venue(venue_code=payload.venue_id, name=payload.name, capacity=payload.capacity)
    db.add(venue)
    db.commit()
    db.refresh(venue)
    return venue


@router.get("/{venue_id}", response_model=VenueOut)
def get_venue(
    venue_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> VenueOut:
    venue = db.execute(select(Venue).where(Venue.venue_code == venue_id)).scalar_one_or_none()
    if venue is None:
        raise ResourceNotFoundError("Venue", venue_id)
    return venue
