"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Balance
  3xxx: Quote
  4xxx: Order
  5xxx: Position
  6xxx: Analytics
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class CreatorRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Access denied", 403)


class TradingDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(
            1007,
            "Trading not allowed for admin accounts due to conflict of interest",
            403,
        )


class CreatorSignupDeniedError(AppError):
    def __init__(self) -> None:
        super().__init__(1008, "Creator registration requires a valid creator code", 403)


# --- 2xxx: Balance ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance for this order: required {required} cents, "
            f"available {available} cents",
            400,
        )


class BalanceNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Balance not found for user {user_id}", 404)


class InvalidAdjustmentError(AppError):
    def __init__(self, action: str) -> None:
        super().__init__(2003, f"Invalid action: {action}", 400)


# --- 3xxx: Quote ---

class PriceUnavailableError(AppError):
    def __init__(self, symbol: str) -> None:
        super().__init__(3001, f"Unable to get current market price for {symbol}", 500)


# --- 4xxx: Order ---

class UnsupportedOrderTypeError(AppError):
    def __init__(self, order_type: str) -> None:
        super().__init__(4001, f"Only market orders are supported, got '{order_type}'", 400)


class InvalidQuantityError(AppError):
    def __init__(self, quantity: int) -> None:
        super().__init__(4002, f"Quantity must be greater than 0, got {quantity}", 400)


class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class OrderNotCancellableError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4006, f"Order not found or cannot be cancelled: {order_id}", 404)


# --- 5xxx: Position ---

class InsufficientPositionError(AppError):
    def __init__(self, held: int, requested: int) -> None:
        super().__init__(
            5001,
            f"Insufficient position to sell. You have {held} shares, "
            f"but trying to sell {requested} shares.",
            400,
        )


class PositionNotFoundError(AppError):
    def __init__(self, symbol: str) -> None:
        super().__init__(5002, f"Position not found: {symbol}", 404)


class InvalidClosePercentageError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5003, f"Invalid close request: {detail}", 400)


# --- 6xxx: Analytics ---

class InvalidPeriodError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6001, f"Invalid performance request: {detail}", 400)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class RequestValidationFailed(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, f"Invalid request: {detail}", 400)
