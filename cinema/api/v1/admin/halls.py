from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cinema.api.deps import get_db, get_current_admin_user
from cinema.core.errors import HallNotFound
from cinema.models.user import User
from cinema.registries.halls import HallRegistry
from cinema.schemas.seat import Hall as HallSchema, HallCreate, HallUpdate

router = APIRouter(prefix="/admin/halls", tags=["Admin - Halls"])


@router.post("", response_model=HallSchema, status_code=status.HTTP_201_CREATED)
def create_hall(
    data: HallCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Create a hall along with its seats (A1..A10, B1.. and so on)."""
    hall = HallRegistry(db).create(data.name, data.total_seats)
    db.commit()
    db.refresh(hall)
    return hall


@router.patch("/{hall_id}", response_model=HallSchema)
def update_hall(
    hall_id: int,
    data: HallUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Rename a hall and/or raise its seat count; new seats continue the numbering."""
    halls = HallRegistry(db)
    hall = halls.get(hall_id)
    if hall is None:
        raise HallNotFound(f"Hall {hall_id} not found")

    halls.enlarge(hall, total_seats=data.total_seats, name=data.name)
    db.commit()
    db.refresh(hall)
    return hall
