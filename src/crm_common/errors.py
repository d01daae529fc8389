"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Profile
  2xxx: Credit ledger
  3xxx: Messaging (sessions, chat, quick replies, campaigns)
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


# --- 1xxx: Auth/Profile ---

class NotAuthenticatedError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Authentication required", 401)


class UnauthorizedError(AppError):
    def __init__(self, detail: str = "Operation not permitted for this role") -> None:
        super().__init__(1002, detail, 403)


class DuplicateProfileError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1003, f"Profile already exists for user {user_id}", 409)


class ProfileNotFoundError(AppError):
    def __init__(self, profile_id: str) -> None:
        super().__init__(1004, f"Profile not found: {profile_id}", 404)


class InvalidRoleError(AppError):
    def __init__(self, role: str) -> None:
        super().__init__(1005, f"Invalid role: {role}", 422)


# --- 2xxx: Credit ledger ---

class InvalidAmountError(AppError):
    def __init__(self, amount: object) -> None:
        super().__init__(2001, f"Amount must be a positive number of whole cents, got {amount}", 422)


class MissingReceiptError(AppError):
    def __init__(self) -> None:
        super().__init__(2002, "Receipt number is required", 422)


class ClientNotFoundError(AppError):
    def __init__(self, client_id: str) -> None:
        super().__init__(2003, f"Client profile not found: {client_id}", 404)


class UnsupportedTransactionTypeError(AppError):
    def __init__(self, tx_type: str) -> None:
        super().__init__(2004, f"Transaction type not supported: {tx_type}", 422)


class InsufficientBalanceError(AppError):
    def __init__(self, required: object, available: object) -> None:
        super().__init__(
            2005,
            f"Insufficient withdrawable balance: required {required}, available {available}",
            422,
        )


class PackageNotFoundError(AppError):
    def __init__(self, package_id: str) -> None:
        super().__init__(2006, f"Credit package not found: {package_id}", 404)


# --- 3xxx: Messaging ---

class SessionNotFoundError(AppError):
    def __init__(self, session_id: str) -> None:
        super().__init__(3001, f"Session not found: {session_id}", 404)


class QuickReplyNotFoundError(AppError):
    def __init__(self, reply_id: str) -> None:
        super().__init__(3002, f"Quick reply not found: {reply_id}", 404)


class CampaignNotFoundError(AppError):
    def __init__(self, campaign_id: str) -> None:
        super().__init__(3003, f"Campaign not found: {campaign_id}", 404)


class InvalidCampaignStateError(AppError):
    def __init__(self, campaign_id: str, status: str, action: str) -> None:
        super().__init__(
            3004, f"Campaign {campaign_id} in status {status} cannot {action}", 422
        )


class InvalidCampaignError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3005, f"Invalid campaign: {detail}", 422)


class EmptyMessageError(AppError):
    def __init__(self) -> None:
        super().__init__(3006, "Message content must not be empty", 422)


# --- 9xxx: System ---

class StorageUnavailableError(AppError):
    def __init__(self, detail: str = "Storage backend unavailable") -> None:
        super().__init__(9001, detail, 503)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
