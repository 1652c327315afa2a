import os
from typing import Optional

from fastapi import Header, HTTPException

from medtrack.core.env import load_env
load_env()


def verify_api_token(authorization: Optional[str] = Header(default=None)) -> str:
    secret = os.getenv("MEDTRACK_API_TOKEN")

    if not secret:
        raise HTTPException(
            status_code=500,
            detail="API token not configured."
        )

    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or token.strip() != secret:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized."
        )
    return token.strip()
