import logging

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from app.settings import settings

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

def get_current_user(
    token: str = Depends(oauth2_scheme)
) -> dict:
    try:
        response = httpx.get(
            f"{settings.MAIN_BACKEND_URL}/admin/user/me",
            headers={"Authorization": f"Bearer {token}"}
        )
        response.raise_for_status()  # Raise an exception for bad status codes
        return response.json()
    except httpx.HTTPStatusError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except httpx.RequestError as e:
        logger.error("auth backend unreachable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not connect to authentication service",
        ) from e


def get_current_user_id(user: dict = Depends(get_current_user)) -> str:
    user_id = user.get("id") or user.get("uid")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign-in required.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return str(user_id)
