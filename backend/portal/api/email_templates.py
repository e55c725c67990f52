"""Email template administration."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_admin
from ..database import get_db
from ..schemas.email_template import (
    EmailPreviewRequest,
    EmailTemplateCreate,
    EmailTemplateResponse,
    EmailTemplateUpdate,
    RenderedEmail,
    SendTestEmailRequest,
    SendTestEmailResponse,
)
from ..services import EmailTemplateService

router = APIRouter(prefix="/api/admin/email-templates", tags=["admin"])


@router.get("", response_model=List[EmailTemplateResponse])
def list_templates(db: Session = Depends(get_db), auth: AuthContext = Depends(require_admin)):
    service = EmailTemplateService(db)
    return [service.to_response(t) for t in service.list_templates()]


@router.post("", response_model=EmailTemplateResponse, status_code=201)
def create_template(
    data: EmailTemplateCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    service = EmailTemplateService(db)
    return service.to_response(service.create_template(data))


@router.get("/{template_id}", response_model=EmailTemplateResponse)
def get_template(template_id: str, db: Session = Depends(get_db), auth: AuthContext = Depends(require_admin)):
    service = EmailTemplateService(db)
    return service.to_response(service.get_template(template_id))


@router.put("/{template_id}", response_model=EmailTemplateResponse)
def update_template(
    template_id: str,
    data: EmailTemplateUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    service = EmailTemplateService(db)
    return service.to_response(service.update_template(template_id, data))


@router.delete("/{template_id}", status_code=204)
def delete_template(template_id: str, db: Session = Depends(get_db), auth: AuthContext = Depends(require_admin)):
    EmailTemplateService(db).delete_template(template_id)


@router.post("/{template_id}/preview", response_model=RenderedEmail)
def preview_template(
    template_id: str,
    data: EmailPreviewRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Render with sample data; ``variables`` override the samples."""
    return EmailTemplateService(db).preview(template_id, data.variables)


@router.post("/{template_id}/send-test", response_model=SendTestEmailResponse)
def send_test_email(
    template_id: str,
    data: SendTestEmailRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Send the sample rendering to ``recipient_email`` through Mailgun."""
    return EmailTemplateService(db).send_test(template_id, data.recipient_email, data.variables)
