from .auth_store import AuthStore
from .breakage_state import (
    BreakageActionAvailability,
    BreakageSummary,
    breakage_action_availability,
    breakage_summary,
    build_replacement_dispatch_payload,
    replacement_items,
)
from .config import ClientConfig, ConfigError, load_config
from .dispatch_state import (
    DispatchActionAvailability,
    DispatchStatus,
    derive_dispatch_status,
    dispatch_action_availability,
    dispatch_stats,
    dispatch_totals,
    item_remaining_quantity,
    receipt_progress,
    status_badge,
)
from .exceptions import (
    ApiError,
    AuthError,
    BreakageActionForbiddenError,
    BreakageStateError,
    ConflictError,
    DispatchActionForbiddenError,
    DispatchStateError,
    ForbiddenError,
    NotFoundError,
    NotLoggedInError,
    PermissionError,
    RateLimitError,
    ServerError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)
from .http_client import HttpClient
from .item_availability import available_quantity, is_selectable, selectable_items, validate_quantity_against_available
from .models import (
    EffectivePermissionsResponse,
    PermissionEntry,
    SessionData,
    StoreItem,
    TokenResponse,
    UserResponse,
)
from .models_breakages import AssignableItem, Breakage, BreakageItem, BreakageQuery
from .models_dispatch import Dispatch, DispatchItem, DispatchQuery
from .models_products import Product, ProductQuery, ProductSummary, calculate_product_summary
from .session import ApiSession
from .tracing import TraceContext
from .ui_errors import UserFacingError, to_user_facing_error
from .validation import ClientValidationError, ValidationIssue

__all__ = [
    "ApiError",
    "ApiSession",
    "AssignableItem",
    "AuthError",
    "AuthStore",
    "Breakage",
    "BreakageActionAvailability",
    "BreakageActionForbiddenError",
    "BreakageItem",
    "BreakageQuery",
    "BreakageStateError",
    "BreakageSummary",
    "ClientConfig",
    "ClientValidationError",
    "ConfigError",
    "ConflictError",
    "Dispatch",
    "DispatchActionAvailability",
    "DispatchActionForbiddenError",
    "DispatchItem",
    "DispatchQuery",
    "DispatchStateError",
    "DispatchStatus",
    "EffectivePermissionsResponse",
    "ForbiddenError",
    "HttpClient",
    "NotFoundError",
    "NotLoggedInError",
    "PermissionEntry",
    "PermissionError",
    "Product",
    "ProductQuery",
    "ProductSummary",
    "RateLimitError",
    "ServerError",
    "SessionData",
    "StoreItem",
    "TokenResponse",
    "TraceContext",
    "TransportError",
    "UnauthorizedError",
    "UserFacingError",
    "UserResponse",
    "ValidationError",
    "ValidationIssue",
    "available_quantity",
    "breakage_action_availability",
    "breakage_summary",
    "build_replacement_dispatch_payload",
    "calculate_product_summary",
    "derive_dispatch_status",
    "dispatch_action_availability",
    "dispatch_stats",
    "dispatch_totals",
    "is_selectable",
    "item_remaining_quantity",
    "load_config",
    "receipt_progress",
    "replacement_items",
    "selectable_items",
    "status_badge",
    "to_user_facing_error",
    "validate_quantity_against_available",
]
