import logging
import httpx
from openai import AsyncOpenAI

from plantdoc.config import (
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    PLANTDOC_MODEL,
    FLOW_TIMEOUT,
    API_CONNECT_TIMEOUT,
)

logger = logging.getLogger(__name__)

# Initialize the model client once per process; every flow reuses it
openai_client = None
if OPENAI_API_KEY:
    # httpx client with explicit timeouts
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=API_CONNECT_TIMEOUT,
            read=FLOW_TIMEOUT,
            write=FLOW_TIMEOUT,
            pool=FLOW_TIMEOUT
        )
    )
    openai_client = AsyncOpenAI(
        api_key=OPENAI_API_KEY,
        base_url=OPENAI_BASE_URL or None,
        http_client=http_client,
    )
    logger.info(f"Model client initialized ({PLANTDOC_MODEL}, {FLOW_TIMEOUT}s timeout)")
else:
    logger.warning("OPENAI_API_KEY not set - AI flows will fail until it is configured")
