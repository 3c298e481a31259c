from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    ConfigLookup = 1000
    InvalidAddress = 1001
    Sponsorship = 2000
    Submission = 2001
    MissingRole = 2002
    TransactionFailed = 2003
    Rpc = 2004
    InvalidVoucher = 3000
    InvalidSession = 3001
    SessionExpired = 3002
    ChallengeExpired = 3003
    ConnectionExpired = 3004
    InvalidConnection = 3005
    InvalidChallenge = 3006
    SessionRequest = 3007
    UsernameUnavailable = 4000
    Pinning = 4001


@dataclass
class CitizenWalletException(Exception):
    exception_code: ErrorCode
    message: str

    def __str__(self):
        return self.message


class ConfigLookupError(CitizenWalletException):
    def __init__(self, message: str):
        super().__init__(ErrorCode.ConfigLookup, message)


class InvalidAddressError(CitizenWalletException, ValueError):
    def __init__(self, message: str):
        super().__init__(ErrorCode.InvalidAddress, message)


class RpcError(CitizenWalletException):
    def __init__(self, message: str):
        super().__init__(ErrorCode.Rpc, message)


class SponsorshipError(CitizenWalletException):
    def __init__(self, message: str):
        super().__init__(ErrorCode.Sponsorship, message)


class SubmissionError(CitizenWalletException):
    def __init__(self, message: str):
        super().__init__(ErrorCode.Submission, message)


class MissingRoleError(CitizenWalletException):
    role: str
    account: str
    contract: str

    def __init__(self, role: str, account: str, contract: str):
        super().__init__(
            ErrorCode.MissingRole,
            f"Signer ({account}) does not have the role {role} "
            f"on contract {contract}",
        )
        self.role = role
        self.account = account
        self.contract = contract


class TransactionFailedError(CitizenWalletException):
    def __init__(self, message: str = "Transaction failed"):
        super().__init__(ErrorCode.TransactionFailed, message)


class InvalidVoucherError(CitizenWalletException, ValueError):
    def __init__(self, message: str = "Invalid voucher"):
        super().__init__(ErrorCode.InvalidVoucher, message)


class InvalidSessionError(CitizenWalletException, ValueError):
    def __init__(self, message: str = "Invalid session"):
        super().__init__(ErrorCode.InvalidSession, message)


class ExpiredError(CitizenWalletException):
    pass


class SessionExpiredError(ExpiredError):
    def __init__(self, message: str = "Session request expired"):
        super().__init__(ErrorCode.SessionExpired, message)


class ChallengeExpiredError(ExpiredError):
    def __init__(self, message: str = "Challenge expired"):
        super().__init__(ErrorCode.ChallengeExpired, message)


class ConnectionExpiredError(ExpiredError):
    def __init__(self, message: str = "Connection request expired"):
        super().__init__(ErrorCode.ConnectionExpired, message)


class InvalidConnectionError(CitizenWalletException, ValueError):
    def __init__(self, message: str):
        super().__init__(ErrorCode.InvalidConnection, message)


class InvalidChallengeError(CitizenWalletException):
    def __init__(self, message: str = "Invalid Challenge"):
        super().__init__(ErrorCode.InvalidChallenge, message)


class SessionRequestError(CitizenWalletException):
    status: int | None

    def __init__(self, message: str, status: int | None = None):
        super().__init__(ErrorCode.SessionRequest, message)
        self.status = status


class UsernameUnavailableError(CitizenWalletException):
    def __init__(self, message: str):
        super().__init__(ErrorCode.UsernameUnavailable, message)


class PinningError(CitizenWalletException):
    def __init__(self, message: str):
        super().__init__(ErrorCode.Pinning, message)
