from slowapi import Limiter
from slowapi.util import get_remote_address

from plantdoc.config import ANALYZE_RATE_LIMIT

# Shared by every router so app.state.limiter sees the same instance
limiter = Limiter(key_func=get_remote_address)

analyze_limit = limiter.limit(ANALYZE_RATE_LIMIT)
