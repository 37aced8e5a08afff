from fastapi import HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth.auth_handler import decode_jwt


class JWTBearer(HTTPBearer):
    """Bearer-token guard; with require_admin it also checks the is_admin claim."""

    def __init__(self, require_admin: bool = False, auto_error: bool = True):
        super().__init__(auto_error=auto_error)
        self.require_admin = require_admin

    async def __call__(self, request: Request):
        credentials: HTTPAuthorizationCredentials = await super().__call__(request)
        if not credentials:
            raise HTTPException(status_code=403, detail="Invalid authorization code.")
        if credentials.scheme != "Bearer":
            raise HTTPException(status_code=403, detail="Invalid authentication scheme.")

        payload = decode_jwt(credentials.credentials)
        if not payload:
            raise HTTPException(status_code=403, detail="Invalid token or expired token.")
        if self.require_admin and not payload.get("is_admin"):
            raise HTTPException(status_code=403, detail="Admin access required.")

        request.state.user_id = payload.get("user_id")
        return credentials.credentials
