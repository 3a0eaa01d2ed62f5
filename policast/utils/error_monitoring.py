import logging
import json
import traceback
from typing import Dict, Any, Optional, List, Deque, Tuple
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from collections import defaultdict, deque


RATE_LIMIT_MARKERS = ("429", "too many requests", "resource_exhausted")


class AIServiceError(Exception):
    """Failure talking to the generative-AI provider or reading its config."""
    pass


class MaxRetriesExceededError(AIServiceError):
    """Raised when every retry attempt was rate limited."""
    pass


class ErrorCategory(Enum):
    """Errors are either rate limited (retried) or everything else"""
    RATE_LIMITED = "rate_limited"
    GENERAL = "general"


USER_MESSAGES: Dict[str, Dict[ErrorCategory, str]] = {
    'fetch_news': {
        ErrorCategory.RATE_LIMITED: "High traffic detected. The AI is busy. Please wait a minute and try again.",
        ErrorCategory.GENERAL: "Failed to load news. Please check your internet connection.",
    },
    'generate_kit': {
        ErrorCategory.RATE_LIMITED: "High traffic detected. The AI is busy. Please wait a minute and try again.",
        ErrorCategory.GENERAL: "Failed to generate content. Please try again.",
    },
}

DEFAULT_MESSAGES: Dict[ErrorCategory, str] = {
    ErrorCategory.RATE_LIMITED: "High traffic detected. The AI is busy. Please wait a minute and try again.",
    ErrorCategory.GENERAL: "Something went wrong. Please try again.",
}


def _status_of(error: BaseException) -> Optional[int]:
    # google.genai.errors.APIError exposes ``code``; other clients use ``status``
    for attr in ('code', 'status', 'status_code'):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, 'response', None)
    if response is not None:
        for attr in ('status', 'status_code'):
            value = getattr(response, attr, None)
            if isinstance(value, int):
                return value
    return None


def is_rate_limit_error(error: BaseException) -> bool:
    """True when the error carries an HTTP 429 or an equivalent message."""
    if isinstance(error, MaxRetriesExceededError):
        return True
    if _status_of(error) == 429:
        return True
    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


@dataclass
class ErrorContext:
    """Context for an error occurrence"""
    error_type: str
    error_message: str
    stack_trace: str
    timestamp: datetime
    operation: str
    category: str
    user_message: str
    metadata: Optional[Dict[str, Any]] = None


class ErrorHandler:
    """
    Records failures and turns them into the message shown to the user.

    There is no recovery here: callers decide whether to re-raise.
    """

    def __init__(self, history_size: int = 100) -> None:
        self.error_history: Deque[ErrorContext] = deque(maxlen=history_size)
        self.error_counts: Dict[str, int] = defaultdict(int)
        self.logger = logging.getLogger(__name__)

    def classify(self, error: BaseException) -> ErrorCategory:
        if is_rate_limit_error(error):
            return ErrorCategory.RATE_LIMITED
        return ErrorCategory.GENERAL

    def user_message(self, error: BaseException, operation: str) -> str:
        category = self.classify(error)
        return USER_MESSAGES.get(operation, DEFAULT_MESSAGES).get(category, DEFAULT_MESSAGES[category])

    def handle_error(
        self,
        error: BaseException,
        operation: str,
        context: Optional[Dict[str, Any]] = None
    ) -> ErrorContext:
        error_type = type(error).__name__
        error_message = str(error)
        stack_trace = ''.join(traceback.format_exception(type(error), error, error.__traceback__))
        timestamp = datetime.now()
        category = self.classify(error)

        error_context = ErrorContext(
            error_type=error_type,
            error_message=error_message,
            stack_trace=stack_trace,
            timestamp=timestamp,
            operation=operation,
            category=category.value,
            user_message=self.user_message(error, operation),
            metadata=context or {},
        )

        self.error_history.append(error_context)
        self.error_counts[error_type] += 1

        # Structured log for error
        self.logger.error(json.dumps({
            'event': 'error',
            'operation': operation,
            'category': category.value,
            'error_type': error_type,
            'error_message': error_message,
            'timestamp': timestamp.isoformat(),
        }, ensure_ascii=False))

        return error_context

    def detect_error_patterns(self) -> List[str]:
        patterns: List[str] = []
        if not self.error_history:
            return patterns

        tuple_counts: Dict[Tuple[str, str], int] = defaultdict(int)
        for ctx in self.error_history:
            tuple_counts[(ctx.error_type, ctx.operation)] += 1

        for (etype, operation), count in tuple_counts.items():
            if count >= 3:
                patterns.append(
                    f"Repeated pattern: {etype} in {operation} occurred {count} times recently"
                )

        return patterns

    def get_error_statistics(self) -> Dict[str, Any]:
        total = sum(self.error_counts.values())
        rate_limited = sum(1 for ctx in self.error_history if ctx.category == ErrorCategory.RATE_LIMITED.value)
        return {
            'total_errors': total,
            'rate_limited': rate_limited,
            'error_types': dict(self.error_counts),
        }
