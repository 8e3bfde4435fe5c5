from slowapi import Limiter
from slowapi.util import get_remote_address

from talentdesk.core.config import get_settings

settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    default_limits=["120/minute"],
)
