"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Balance
  3xxx: Market
  4xxx: Trade request
  5xxx: Position
  9xxx: System

Domain errors (1xxx-5xxx) are fixed by changing the request. StoreUnavailableError
is the only one a caller should retry unchanged.
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

class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid email or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Admin access required", 403)


# --- 2xxx: Balance ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: float, available: float) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required:.2f}, available {available:.2f}",
            422,
        )


class UserNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"User not found: {user_id}", 404)


# --- 3xxx: Market ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketNotOpenError(AppError):
    def __init__(self, market_id: str, status: str) -> None:
        super().__init__(3002, f"Market {market_id} is not open (status={status})", 422)


class MarketAlreadyResolvedError(AppError):
    def __init__(self, market_id: str, status: str) -> None:
        super().__init__(3003, f"Market {market_id} already resolved (status={status})", 409)


class MarketNotCancellableError(AppError):
    def __init__(self, market_id: str, status: str) -> None:
        super().__init__(3004, f"Market {market_id} is not open (status={status})", 409)


class TrialExistsError(AppError):
    def __init__(self, nct_id: str) -> None:
        super().__init__(3005, f"Trial {nct_id} already has a market", 409)


# --- 4xxx: Trade request ---

class InvalidAmountError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Invalid amount: {detail}", 422)


class InvalidTradeTypeError(AppError):
    def __init__(self, trade_type: str) -> None:
        super().__init__(4002, f"Invalid trade type: {trade_type}", 422)


class InvalidOutcomeError(AppError):
    def __init__(self, outcome: str) -> None:
        super().__init__(4003, f"Invalid outcome {outcome!r}: must be YES, NO, or CANCEL", 422)


# --- 5xxx: Position ---

class NoPositionError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(5001, f"No position to sell in market {market_id}", 422)


class InsufficientSharesError(AppError):
    def __init__(self, side: str, requested: float, held: float) -> None:
        super().__init__(
            5002,
            f"Insufficient {side} shares: requested {requested:.4f}, held {held:.4f}",
            422,
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class StoreUnavailableError(AppError):
    def __init__(self, detail: str = "Storage temporarily unavailable, retry later") -> None:
        super().__init__(9003, detail, 503)
