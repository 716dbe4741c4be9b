"""
Cost Canary error types
Every failure aborts the invocation; nothing is published on error
"""
from typing import Any, Dict, Optional


class CostCanaryError(Exception):
    """Base error carrying the failing operation and the offending resource"""

    def __init__(self, message: str, operation: str, instance_type: Optional[str] = None,
                 instance_id: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.instance_type = instance_type
        self.instance_id = instance_id
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': type(self).__name__,
            'message': self.message,
            'operation': self.operation,
            'instanceType': self.instance_type,
            'instanceId': self.instance_id,
            'cause': str(self.cause) if self.cause else None,
        }


class EnumerationError(CostCanaryError):
    """Inventory query failed"""


class PriceNotFoundError(CostCanaryError):
    """Catalog query failed or returned no usable rate"""


class AggregationError(CostCanaryError):
    """An instance type has no resolved price"""


class PublishError(CostCanaryError):
    """Metrics backend rejected the write"""
