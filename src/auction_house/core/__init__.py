from auction_house.core.clock import Clock, SystemClock, system_clock
from auction_house.core.config import settings
from auction_house.core.database import Base, async_session_maker, engine
from auction_house.core.redis import close_redis, get_redis

__all__ = [
    "settings",
    "Base",
    "engine",
    "async_session_maker",
    "get_redis",
    "close_redis",
    "Clock",
    "SystemClock",
    "system_clock",
]
