"""
slowapi rate limiter shared by the auth and payment routers.

Mounted onto app.state in main.py so the slowapi middleware can find it.
Storage defaults to in-process memory; point RATE_LIMIT_STORAGE_URI at
Redis (redis://host:6379/0) when running more than one worker.
"""
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
)
