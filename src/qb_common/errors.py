"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Account / Ledger
  3xxx: Company / Product
  4xxx: Upgrade
  5xxx: Settlement
  9xxx: System

Authorization errors are 403, state errors 409/422, and none of them are retried.
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


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class SchedulerOnlyError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Only the scheduler may trigger settlement", 403)


class AdminOnlyError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Administrator token required", 403)


# --- 2xxx: Account / Ledger ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
        )


class AccountNotFoundError(AppError):
    def __init__(self, account_id: str) -> None:
        super().__init__(2002, f"Account not found: {account_id}", 404)


class NotAccountOwnerError(AppError):
    def __init__(self, account_id: str) -> None:
        super().__init__(2003, f"No access to account {account_id}", 403)


class BalanceAlreadyInitializedError(AppError):
    def __init__(self, account_id: str) -> None:
        super().__init__(2004, f"Balance already initialized for account {account_id}", 409)


class InvalidAmountError(AppError):
    def __init__(self, amount: int) -> None:
        super().__init__(2005, f"Amount must be a positive number of cents, got {amount}", 422)


class PersonalAccountNotFoundError(AppError):
    def __init__(self, owner_id: str) -> None:
        super().__init__(2006, f"Personal account not found for {owner_id}", 404)


# --- 3xxx: Company / Product ---

class CompanyNotFoundError(AppError):
    def __init__(self, company_id: str) -> None:
        super().__init__(3001, f"Company not found: {company_id}", 404)


class NotCompanyOwnerError(AppError):
    def __init__(self, company_id: str) -> None:
        super().__init__(3002, f"You do not own company {company_id}", 403)


class CompanyNotPublicError(AppError):
    def __init__(self, company_id: str) -> None:
        super().__init__(3003, f"Company must be public: {company_id}", 422)


class TickerTakenError(AppError):
    def __init__(self, ticker: str) -> None:
        super().__init__(3004, f"Ticker symbol already in use: {ticker}", 409)


class ProductNotFoundError(AppError):
    def __init__(self, product_id: str) -> None:
        super().__init__(3005, f"Product not found: {product_id}", 404)


# --- 4xxx: Upgrade ---

class UpgradeNotFoundError(AppError):
    def __init__(self, upgrade_id: str) -> None:
        super().__init__(4001, f"Upgrade not found: {upgrade_id}", 404)


class UpgradeNotAvailableError(AppError):
    def __init__(self, upgrade_id: str) -> None:
        super().__init__(4002, f"Upgrade is not available for purchase: {upgrade_id}", 422)


class UserUpgradeNotFoundError(AppError):
    def __init__(self, user_upgrade_id: str) -> None:
        super().__init__(4003, f"User upgrade not found: {user_upgrade_id}", 404)


class UpgradeNotOwnedError(AppError):
    def __init__(self, user_upgrade_id: str) -> None:
        super().__init__(4004, f"This upgrade does not belong to you: {user_upgrade_id}", 403)


class UpgradeAlreadyUsedError(AppError):
    def __init__(self, user_upgrade_id: str) -> None:
        super().__init__(4005, f"This upgrade has already been used: {user_upgrade_id}", 409)


class InvalidUpgradeTypeError(AppError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(4006, f"Invalid upgrade type: expected {expected}, got {actual}", 422)


# --- 5xxx: Settlement ---

class TickPendingError(AppError):
    def __init__(self, tick_id: str) -> None:
        super().__init__(
            5001, f"Settlement tick {tick_id} is still pending; resume it first", 409
        )


class TickInProgressError(AppError):
    def __init__(self) -> None:
        super().__init__(5002, "Another settlement run holds the lock", 409)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
