from slowapi import Limiter
from slowapi.util import get_remote_address
import os

# Shared limiter so app.state.limiter and the route decorators agree
limiter = Limiter(
    key_func=get_remote_address,
    enabled=os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true",
)
