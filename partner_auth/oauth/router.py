"""
Partner authorization endpoints.

Provides the browser-facing surface of the OAuth2 flow:
- GET /partner/onenote-auth - Landing page
- GET /partner/authorize - Start OAuth flow
- GET /partner/auth/microsoft/callback - Handle callback, store tokens

Failures are raised as domain exceptions and mapped to responses by the
handlers registered in main.py.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from partner_auth.oauth.config import CALLBACK_PATH
from partner_auth.oauth.dependencies import FlowService


logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=TEMPLATES_DIR)

router = APIRouter(tags=["authorization"])


@router.get("/partner/onenote-auth")
async def landing(request: Request):
    """Render the branded landing page."""
    return templates.TemplateResponse(request, "index.html")


@router.get("/partner/authorize")
async def authorize(request: Request, flow: FlowService):
    """
    Start the OAuth2 authorization flow.

    Stores a fresh anti-forgery state in the session and redirects the
    browser to the provider's authorization page.
    """
    url = flow.initiate(request.session)
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


@router.get(CALLBACK_PATH)
async def callback(
    request: Request,
    flow: FlowService,
    code: Optional[str] = None,
    state: Optional[str] = None,
):
    """
    Handle the OAuth2 callback from the provider.

    Validates state, exchanges the code, fetches the profile and stores
    the tokens. Renders the success page with the user's email.
    """
    authorization = await flow.complete(request.session, code=code, state=state)

    return templates.TemplateResponse(
        request,
        "success.html",
        {"user_email": authorization.email},
    )
