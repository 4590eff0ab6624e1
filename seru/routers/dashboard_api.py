from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import ValidationError
from ..responses import success
from ..security import Principal, require_admin
from ..services import dashboard

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

def _require_user_id(user_id: Optional[int]) -> int:
    if user_id is None:
        raise ValidationError("User ID is required")
    return user_id

@router.get("")
def dashboard_get(action: str = "stats", id: Optional[int] = None, admin: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    if action == "stats":
        return success(dashboard.dashboard_stats(db))
    if action == "customers":
        return success(dashboard.customers_overview(db))
    if action == "rooms":
        return success(dashboard.rooms_overview(db))
    if action == "user":
        return success(dashboard.get_customer(db, _require_user_id(id)))
    raise ValidationError("Invalid action")

@router.delete("")
def dashboard_delete(action: str = "", id: Optional[int] = None, admin: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    if action != "delete_customer":
        raise ValidationError("Invalid action")
    deleted = dashboard.delete_customer_bookings(db, _require_user_id(id))
    return success({"message": f"Successfully deleted {deleted} booking records for the customer", "deleted": deleted})
