"""Engine components: feed → reconcile → queue → dispatch → store/channel."""

from .channel import TelegramChannel
from .deadline import Deadline
from .dispatcher import ItemDispatcher
from .feed import HackerNewsFeed
from .formatting import MessageFormatter
from .intset import IdSet
from .models import Action, ActionKind, DispatchOutcome, FeedItem, StoryRecord
from .reconciler import ReconciliationEngine
from .sweeper import RetentionSweeper
from .task_queue import TaskQueue

__all__ = [
    "Action",
    "ActionKind",
    "Deadline",
    "DispatchOutcome",
    "FeedItem",
    "HackerNewsFeed",
    "IdSet",
    "ItemDispatcher",
    "MessageFormatter",
    "ReconciliationEngine",
    "RetentionSweeper",
    "StoryRecord",
    "TaskQueue",
    "TelegramChannel",
]
