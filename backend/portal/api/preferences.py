"""The signed-in user's newsletter preferences."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.preferences import PreferencesResponse, PreferencesUpdate
from ..services import PreferencesService

router = APIRouter(prefix="/api/user/preferences", tags=["user"])


@router.get("", response_model=PreferencesResponse)
def get_preferences(db: Session = Depends(get_db), auth: AuthContext = Depends(require_auth)):
    return PreferencesService(db).get_preferences(auth.user_id)


@router.put("", response_model=PreferencesResponse)
def save_preferences(
    data: PreferencesUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Replace preferences. Unknown categories reject the whole request."""
    return PreferencesService(db).save_preferences(auth.user_id, data)


@router.post("/unsubscribe", response_model=PreferencesResponse)
def unsubscribe(db: Session = Depends(get_db), auth: AuthContext = Depends(require_auth)):
    return PreferencesService(db).unsubscribe(auth.user_id)
