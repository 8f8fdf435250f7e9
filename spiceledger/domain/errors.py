from __future__ import annotations


class SpiceLedgerError(Exception):
    code = "spiceledger_error"


class NotFoundError(SpiceLedgerError):
    code = "not_found"


class UserNotFoundError(NotFoundError):
    def __init__(self, message: str = "user not found"):
        super().__init__(message)


class ProductNotFoundError(NotFoundError):
    def __init__(self, message: str = "product not found"):
        super().__init__(message)


class GradeNotFoundError(NotFoundError):
    def __init__(self, message: str = "grade not found"):
        super().__init__(message)


class PriceNotFoundError(NotFoundError):
    def __init__(self, message: str = "price not found for date/grade"):
        super().__init__(message)


class ConflictError(SpiceLedgerError):
    code = "conflict"


class EmailAlreadyExistsError(ConflictError):
    def __init__(self, message: str = "email already exists"):
        super().__init__(message)


class InvalidCredentialsError(SpiceLedgerError):
    code = "invalid_credentials"

    def __init__(self, message: str = "invalid credentials"):
        super().__init__(message)


class InvalidTokenError(SpiceLedgerError):
    code = "invalid_token"

    def __init__(self, message: str = "invalid token"):
        super().__init__(message)


class InvalidGradeForProductError(SpiceLedgerError):
    code = "invalid_grade_for_product"

    def __init__(self, message: str = "grade does not belong to product"):
        super().__init__(message)
