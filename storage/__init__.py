from .base import Storage
from .json_storage import JsonStorage

__all__ = ["Storage", "JsonStorage"]
