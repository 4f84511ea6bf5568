"""OAuth2 router: external provider redirect and callback."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse

from userdeck.api.dependencies import get_auth_service, get_oauth2_service
from userdeck.models.enums import AuthProvider
from userdeck.schemas.auth import TokenOut
from userdeck.services.auth import AuthService
from userdeck.services.oauth2 import OAuth2Service

router = APIRouter(prefix="/auth/ext", tags=["oauth2"])

OAuth2Dep = Annotated[OAuth2Service, Depends(get_oauth2_service)]
AuthDep = Annotated[AuthService, Depends(get_auth_service)]


@router.get("/{provider}", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
async def authorize(provider: AuthProvider, oauth2: OAuth2Dep) -> RedirectResponse:
    return RedirectResponse(await oauth2.authorization_url(provider))


@router.get("/{provider}/callback", response_model=TokenOut)
async def callback(
    provider: AuthProvider,
    oauth2: OAuth2Dep,
    auth: AuthDep,
    code: str = Query(..., min_length=1),
    state: str = Query(..., min_length=1),
) -> TokenOut:
    user = await oauth2.callback(provider, code, state)
    return TokenOut.from_result(await auth.generate_auth(user))
