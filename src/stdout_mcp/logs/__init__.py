from .buffer import LogBuffer
from .models import LogEntry
from .query import QueryService

__all__ = ["LogBuffer", "LogEntry", "QueryService"]
