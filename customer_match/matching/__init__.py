"""Duplicate-matching engine exports."""

from customer_match.matching.config import FormDefaults, MatchingConfig

from customer_match.matching.models import (
    CandidateList,
    CandidateMatch,
    GuardResult,
    LookupResults,
    MatchQuery,
    NewCustomerRequest,
    SessionState,
    SubmissionOutcome,
)

from customer_match.matching.debounce import DebounceScheduler
from customer_match.matching.dispatcher import DispatcherRetiredError, QueryDispatcher
from customer_match.matching.guard import SubmissionGuard
from customer_match.matching.merger import merge
from customer_match.matching.metrics import SessionMetrics
from customer_match.matching.notifier import (
    CollectingNotifier,
    LoggingNotifier,
    Notification,
    NotificationKind,
    Notifier,
)
from customer_match.matching.relevance import RelevanceFilter
from customer_match.matching.session import MatchingSession, SessionStateError

__all__ = [
    # Config
    "FormDefaults",
    "MatchingConfig",
    # Models
    "CandidateList",
    "CandidateMatch",
    "GuardResult",
    "LookupResults",
    "MatchQuery",
    "NewCustomerRequest",
    "SessionState",
    "SubmissionOutcome",
    # Components
    "DebounceScheduler",
    "DispatcherRetiredError",
    "QueryDispatcher",
    "SubmissionGuard",
    "merge",
    "RelevanceFilter",
    "SessionMetrics",
    # Notifications
    "CollectingNotifier",
    "LoggingNotifier",
    "Notification",
    "NotificationKind",
    "Notifier",
    # Session
    "MatchingSession",
    "SessionStateError",
]
