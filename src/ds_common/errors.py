"""Unified error codes and custom exceptions.

Every engine failure is one of six kinds, modelled as intermediate classes so
callers can catch by kind (``except AlreadyFinalizedError``) or by code.

Error code ranges:
  1xxx: Auth
  2xxx: Funds (transfer primitive)
  3xxx: Escrow
  4xxx: Savings
  5xxx: Vault
  6xxx: Generic argument validation
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


# --- Error kinds ---

class InvalidArgumentError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422)


class UnauthorizedError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 403)


class NotFoundError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 404)


class AlreadyFinalizedError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 409)


class NotYetUnlockedError(AppError):
    def __init__(self, index: int, seconds_remaining: int) -> None:
        self.index = index
        self.seconds_remaining = seconds_remaining
        super().__init__(
            4004,
            f"Saving {index} is still locked for {seconds_remaining} seconds",
            422,
        )


class InsufficientFundsError(AppError):
    def __init__(
        self, required: int, available: int, reason: str = "balance", code: int = 2001
    ) -> None:
        self.required = required
        self.available = available
        self.reason = reason
        super().__init__(
            code,
            f"Insufficient {reason}: required {required}, available {available}",
            422,
        )


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


# --- 2xxx: Funds ---

class InsufficientAllowanceError(InsufficientFundsError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(required, available, reason="allowance", code=2002)


# --- 3xxx: Escrow ---

class TradeNotFoundError(NotFoundError):
    def __init__(self, trade_id: int) -> None:
        super().__init__(3001, f"Trade not found: {trade_id}")


class SelfTradeError(InvalidArgumentError):
    def __init__(self) -> None:
        super().__init__(3002, "Buyer must differ from seller")


class TradeAlreadyFinalizedError(AlreadyFinalizedError):
    def __init__(self, trade_id: int, status: str) -> None:
        self.status = status
        super().__init__(3003, f"Trade {trade_id} is already {status}")


class NotTradeBuyerError(UnauthorizedError):
    def __init__(self, trade_id: int) -> None:
        super().__init__(3004, f"Only the buyer can confirm trade {trade_id}")


class NotTradeSellerError(UnauthorizedError):
    def __init__(self, trade_id: int) -> None:
        super().__init__(3005, f"Only the seller can cancel trade {trade_id}")


# --- 4xxx: Savings ---

class SavingNotFoundError(NotFoundError):
    def __init__(self, account: str, index: int) -> None:
        super().__init__(4001, f"Saving {index} not found for account {account}")


class LockPeriodTooShortError(InvalidArgumentError):
    def __init__(self, lock_days: int, min_days: int) -> None:
        super().__init__(
            4002, f"Lock period must be at least {min_days} days, got {lock_days}"
        )


class LockPeriodTooLongError(InvalidArgumentError):
    def __init__(self, lock_days: int, max_days: int) -> None:
        super().__init__(
            4005, f"Lock period must be at most {max_days} days, got {lock_days}"
        )


class SavingAlreadyWithdrawnError(AlreadyFinalizedError):
    def __init__(self, index: int) -> None:
        super().__init__(4003, f"Saving {index} already withdrawn")


# --- 5xxx: Vault ---

class InsufficientVaultBalanceError(InsufficientFundsError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(required, available, reason="vault balance", code=5001)


# --- 6xxx: Argument validation ---

class InvalidAmountError(InvalidArgumentError):
    def __init__(self, amount: object) -> None:
        super().__init__(
            6001, f"Amount must be a positive integer up to 2**256 - 1, got {amount!r}"
        )


class InvalidIdentifierError(InvalidArgumentError):
    def __init__(self, kind: str, value: object) -> None:
        super().__init__(6002, f"Malformed {kind} identifier: {value!r}")


class TextTooLongError(InvalidArgumentError):
    def __init__(self, field: str, max_length: int) -> None:
        super().__init__(6003, f"{field} exceeds {max_length} characters")


class BalanceOverflowError(InvalidArgumentError):
    def __init__(self, account: str, asset: str) -> None:
        super().__init__(
            6004, f"Credit would push {account}/{asset} past the maximum amount"
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self, retry_after: int = 60) -> None:
        self.retry_after = retry_after
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
