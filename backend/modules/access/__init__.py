"""
Access module.

Decides whether a viewer may see gated content (posts and live streams).

Public API:
- IAccessEvaluator: Interface for access decisions
- ISubscriptionLookup / IPurchaseLookup: Records the evaluator consumes
- evaluate_access: Pure decision function
- ContentAccessPolicy, SubscriptionRecord, PurchaseRecord: Data models
"""

from .interfaces import IAccessEvaluator, ISubscriptionLookup, IPurchaseLookup, IPostLookup
from .models import (
    AccessType,
    ContentAccessPolicy,
    SubscriptionStatus,
    SubscriptionRecord,
    PurchaseStatus,
    PurchaseRecord,
    PostRecord,
    PostAccessResponse,
)
from .service import AccessEvaluator, evaluate_access
from .exceptions import PostNotFoundError

__all__ = [
    # Interfaces
    "IAccessEvaluator",
    "ISubscriptionLookup",
    "IPurchaseLookup",
    "IPostLookup",
    # Models
    "AccessType",
    "ContentAccessPolicy",
    "SubscriptionStatus",
    "SubscriptionRecord",
    "PurchaseStatus",
    "PurchaseRecord",
    "PostRecord",
    "PostAccessResponse",
    # Implementation
    "AccessEvaluator",
    "evaluate_access",
    # Exceptions
    "PostNotFoundError",
]
