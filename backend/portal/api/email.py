"""Links followed from newsletter emails."""

import html
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from ..core.config import settings
from ..database import get_db
from ..services import PreferencesService

router = APIRouter(prefix="/api/email", tags=["email"])

_UNSUBSCRIBED_PAGE = """<!DOCTYPE html>
<html lang="da">
<head><meta charset="utf-8"><title>Afmeldt</title></head>
<body>
<h1>Du er nu afmeldt</h1>
<p>Du modtager ikke flere nyhedsbreve fra Lokale Portalen.</p>
<p><a href="{preferences_url}">Skift dine præferencer</a></p>
</body>
</html>"""


@router.get("/unsubscribe", response_class=HTMLResponse)
def unsubscribe(token: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """One-click unsubscribe; the signed token identifies the user."""
    PreferencesService(db).unsubscribe_with_token(token)
    preferences_url = f"{settings.public_app_url.rstrip('/')}/profile/preferences"
    return HTMLResponse(_UNSUBSCRIBED_PAGE.format(preferences_url=html.escape(preferences_url, quote=True)))
