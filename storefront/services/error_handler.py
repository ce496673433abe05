"""
Error recording shared by the data access, storage and session layers.

Every recorded error gets a short id that appears in the log line and in the
New Relic error report, so a flashed message can be matched to its log entry.
"""
import logging
import json
import traceback
import uuid
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

import newrelic.agent

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Where an error came from"""
    DATABASE = "database"
    STORAGE = "storage"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"


@dataclass
class ErrorDetail:
    """Recorded error information"""
    error_id: str
    category: ErrorCategory
    message: str
    exception_type: str
    stack_trace: str
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_id": self.error_id,
            "category": self.category.value,
            "message": self.message,
            "exception_type": self.exception_type,
            "stack_trace": self.stack_trace,
            "context": self.context,
            "timestamp": self.timestamp,
        }


def create_error_detail(
    exception: Exception,
    category: ErrorCategory,
    context: Optional[Dict[str, Any]] = None
) -> ErrorDetail:
    return ErrorDetail(
        error_id=str(uuid.uuid4())[:8],
        category=category,
        message=str(exception) or type(exception).__name__,
        exception_type=type(exception).__name__,
        stack_trace=traceback.format_exc(),
        context=context or {},
    )


def record_error(
    exception: Exception,
    category: ErrorCategory,
    context: Optional[Dict[str, Any]] = None
) -> ErrorDetail:
    """Log an error and report it to New Relic. Call from inside the except block."""
    detail = create_error_detail(exception, category, context)

    log_message = (
        f"[{detail.error_id}] {detail.category.value.upper()} ERROR: {detail.message}"
    )
    if detail.context:
        log_message += f" | Context: {json.dumps(detail.context, ensure_ascii=False, default=str)}"

    # Validation problems are user input, not system faults
    if category == ErrorCategory.VALIDATION:
        logger.warning(log_message)
    else:
        logger.error(log_message)
        logger.debug(f"[{detail.error_id}] Stack trace:\n{detail.stack_trace}")

    newrelic.agent.add_custom_attribute('error_id', detail.error_id)
    newrelic.agent.add_custom_attribute('error_category', detail.category.value)
    newrelic.agent.notice_error()

    return detail
