from typing import Optional

from fastapi import Request
from fastapi.openapi.models import OAuthFlows as OAuthFlowsModel
from fastapi.security.base import SecurityBase
from fastapi.security.utils import get_authorization_scheme_param

from coursehub.errors import AuthenticationError


class OAuth2PasswordBearerWithJSON(SecurityBase):
    """Bearer scheme whose token endpoint takes a JSON body instead of a form."""

    def __init__(
        self,
        tokenUrl: str,
        scheme_name: Optional[str] = None,
        description: Optional[str] = None,
        auto_error: bool = True,
    ):
        self.scheme_name = scheme_name or self.__class__.__name__
        self.auto_error = auto_error
        self.model = OAuthFlowsModel(password={"tokenUrl": tokenUrl})
        self.description = description

    async def __call__(self, request: Request) -> Optional[str]:
        authorization: str = request.headers.get("Authorization")
        scheme, param = get_authorization_scheme_param(authorization)
        if not authorization or scheme.lower() != "bearer" or not param:
            if self.auto_error:
                raise AuthenticationError("Access denied. No token provided.")
            else:
                return None
        return param
