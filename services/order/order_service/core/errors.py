from typing import Any, Optional


class OrderServiceError(Exception):
    reason = "order_service_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {"error": self.reason, "detail": self.message}


class InvalidInput(OrderServiceError):
    reason = "invalid_input"
    status_code = 400


class ReferencedEntityNotFound(OrderServiceError):
    reason = "referenced_entity_not_found"
    status_code = 500

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity.capitalize()} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class NotFound(OrderServiceError):
    reason = "not_found"
    status_code = 404

    def __init__(self, message: str = "Order not found"):
        super().__init__(message)


class ConflictingState(OrderServiceError):
    reason = "conflicting_state"
    status_code = 409


class StoreUnavailable(OrderServiceError):
    reason = "store_unavailable"
    status_code = 500

    def __init__(self, message: str = "Internal server error", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    def to_payload(self) -> dict:
        # never echo driver details back to the caller
        return {"error": self.reason, "detail": "Internal server error"}
