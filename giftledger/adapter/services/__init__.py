from .system_clock import SystemClock
from .uuid_generator import UuidGenerator

__all__ = [
    "SystemClock",
    "UuidGenerator",
]
