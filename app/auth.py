from typing import Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security.api_key import APIKeyHeader

from app.config import RelayConfig
from app.utils import get_config

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)


def get_api_key(
    api_key: Optional[str] = Security(api_key_header),
    config: RelayConfig = Depends(get_config),
):
    # Shared-secret check, off unless API_KEY is configured
    if not config.api_key:
        return None

    has_bearer = api_key.lower().startswith("bearer ") if api_key else False
    key_value = api_key.split(" ", 1)[1].strip() if has_bearer else None
    is_valid = key_value == config.api_key if key_value else False

    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "invalid or missing API key",
                "has_bearer": has_bearer,
            },
            headers={"WWW-Authenticate": "Bearer"},
        )
    return key_value
