import time
from typing import Dict, Optional

import jwt
from fastapi import HTTPException, Request

from core.environment import get_jwt_algorithm, get_jwt_exp_delta_seconds, get_jwt_secret


def token_response(token: str):
    return {
        "access_token": token
    }


def sign_jwt(user_id: str, is_admin: bool = False) -> Dict[str, str]:
    """Generate a JWT token for a given user ID (the user's email)."""
    payload = {
        "user_id": user_id,
        "is_admin": is_admin,
        "expires": time.time() + get_jwt_exp_delta_seconds()
    }
    token = jwt.encode(payload, get_jwt_secret(), algorithm=get_jwt_algorithm())
    return token_response(token)


def decode_jwt(token: str) -> Optional[dict]:
    """Decode a JWT token and return the payload if valid, else None."""
    try:
        decoded_token = jwt.decode(token, get_jwt_secret(), algorithms=[get_jwt_algorithm()])
    except jwt.InvalidTokenError:
        return None

    if decoded_token.get("expires", 0) >= time.time():
        return decoded_token
    return None


def get_user_email_from_token(request: Request) -> str:
    """Extract user email from JWT token in request headers."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid authorization header")

    token = auth_header.split(" ")[1]
    payload = decode_jwt(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return payload.get("user_id")  # user_id contains the email
