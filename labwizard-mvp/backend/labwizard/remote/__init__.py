from .base import BaseNotifier, BaseSelectionSource, BaseSubmitClient
from .factory import get_notifier, get_selection_source, get_submit_client

__all__ = [
    "BaseNotifier",
    "BaseSelectionSource",
    "BaseSubmitClient",
    "get_notifier",
    "get_selection_source",
    "get_submit_client",
]
