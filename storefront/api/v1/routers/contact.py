from fastapi import APIRouter
from fastapi.responses import JSONResponse

from storefront.api.v1.schemas.catalog import ContactIn, ContactOut, ErrorOut

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["contact"])

@router.post("/contact", response_model=ContactOut)
async def post_contact(body: ContactIn):
    """
    Contact form sink. Submissions are only logged; no mail provider is wired in.
    """
    name, email, message = body.name.strip(), body.email.strip(), body.message.strip()
    if not name or not email or not message:
        return JSONResponse(status_code=400, content=ErrorOut(error="All fields required.").model_dump())

    logger.info("contact submission name=%s email=%s chars=%s", name, email, len(message))
    return ContactOut(success=True)
