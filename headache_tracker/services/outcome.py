from dataclasses import dataclass
from typing import Any, Awaitable, Optional

from headache_tracker.services.api import ApiError


@dataclass
class Outcome:
    value: Any = None
    error: Optional[ApiError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def attempt(call: Awaitable) -> Outcome:
    """Await an API call and capture its ApiError instead of raising it."""
    try:
        return Outcome(value=await call)
    except ApiError as e:
        return Outcome(error=e)
