from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
import logging

from ...core.database import get_db
from ...api.deps import get_current_user
from ...schemas.appointment import AppointmentCreate, AppointmentResponse
from ...models.appointment import Appointment
from ...models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.get("/public")
async def public_appointments():
    """Public endpoint - no auth."""
    return {"message": "Public appointment data"}


@router.get("", response_model=List[AppointmentResponse])
def list_appointments(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List the current user's appointments, earliest first."""
    appointments = (
        db.query(Appointment)
        .filter(Appointment.user_id == current_user.id)
        .order_by(Appointment.start)
        .all()
    )
    return [AppointmentResponse.model_validate(a) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    appointment = db.query(Appointment).filter(
        Appointment.id == appointment_id,
        Appointment.user_id == current_user.id
    ).first()

    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found"
        )
    return AppointmentResponse.model_validate(appointment)


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    appointment_data: AppointmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create an appointment for the current user."""
    appointment = Appointment(
        user_id=current_user.id,
        title=appointment_data.title,
        description=appointment_data.description,
        start=appointment_data.start,
        end=appointment_data.end
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)

    logger.info(f"Created appointment {appointment.id} for user {current_user.id}")
    return AppointmentResponse.model_validate(appointment)
