from stackline.core.ports.cache import RequestCache
from stackline.core.ports.clock import Clock
from stackline.core.ports.logger import Logger
from stackline.core.ports.provider import ReviewRequestProvider

__all__ = [
    "Logger",
    "Clock",
    "ReviewRequestProvider",
    "RequestCache",
]
