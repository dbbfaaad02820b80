from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from prompt_gallery.api.dependencies import get_settings
from prompt_gallery.config import Settings
from prompt_gallery.services.contact import ContactError, ContactForm, send_contact_email
from prompt_gallery.services.session import session_from_header

router = APIRouter()


class ContactPayload(BaseModel):
    fullName: str = ""
    reason: str = ""
    email: str = ""
    message: str = ""


@router.post("/contact", summary="Send contact form to the support inbox")
async def contact_endpoint(
        payload: ContactPayload,
        authorization: Optional[str] = Header(None, description="Bearer <session token>"),
        settings: Settings = Depends(get_settings),
):
    if session_from_header(authorization) is None:
        raise HTTPException(status_code=401, detail="Please sign in to send a message.")

    form = ContactForm(
        full_name=payload.fullName,
        reason=payload.reason,
        email=payload.email,
        message=payload.message,
    )
    try:
        form.validate()
    except ContactError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        email_id = await run_in_threadpool(send_contact_email, form, settings)
    except ContactError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "success": True,
        "message": "Email sent successfully!",
        "emailId": email_id,
    }
