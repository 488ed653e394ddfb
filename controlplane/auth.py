from fastapi import Header, HTTPException
from .config import settings

async def require_token(x_api_token: str | None = Header(default=None)):
    # An unset API_TOKEN leaves the control plane open, as on a private network.
    if settings.api_token and x_api_token != settings.api_token:
        raise HTTPException(status_code=401, detail="Unauthorized")
