from functools import lru_cache

from openai import OpenAI

from loanmatch.core.config import settings


@lru_cache(maxsize=1)
def get_lm_client() -> OpenAI:
    """
    Returns a singleton OpenAI-compatible client configured for LM Studio.

    LM Studio typically ignores the API key, but the OpenAI client requires one,
    so a placeholder string is passed by default.
    """
    return OpenAI(
        base_url=settings.lmstudio_base_url,
        api_key=settings.lmstudio_api_key,
        timeout=30.0,
    )
