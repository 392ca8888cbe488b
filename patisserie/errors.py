"""Business errors raised by the order services.

Each error carries a stable ``kind`` and ``message_key``; turning the key
into a user-facing, localised message is left to the client layer.
"""

from typing import Any, Dict, Optional


class OrderServiceError(Exception):
    """Base class for order business-rule violations"""

    kind = "order_error"
    message_key = "orderError"
    status_code = 400

    def __init__(self, detail: Optional[str] = None, **params: Any):
        self.detail = detail or self.message_key
        self.params: Dict[str, Any] = params
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.kind,
            "message_key": self.message_key,
            "detail": self.detail,
            "params": {k: _jsonable(v) for k, v in self.params.items()},
        }


class ValidationError(OrderServiceError):
    kind = "validation_error"
    message_key = "invalidOrderPayload"
    status_code = 400


class InvalidAmount(OrderServiceError):
    kind = "invalid_amount"
    message_key = "invalidAmount"
    status_code = 400


class AmountExceedsRemaining(OrderServiceError):
    kind = "amount_exceeds_remaining"
    message_key = "amountExceedsRemaining"
    status_code = 400


class InvalidTransition(OrderServiceError):
    kind = "invalid_transition"
    message_key = "invalidStatusTransition"
    status_code = 409


class AlreadyTerminal(OrderServiceError):
    kind = "already_terminal"
    message_key = "orderAlreadyClosed"
    status_code = 409


class NotFound(OrderServiceError):
    kind = "not_found"
    message_key = "orderNotFound"
    status_code = 404


class Unauthorized(OrderServiceError):
    kind = "unauthorized"
    message_key = "notAllowedToPerformAction"
    status_code = 403


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    return str(value)
