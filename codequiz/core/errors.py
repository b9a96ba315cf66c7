"""
Domain errors raised by the core and translated to HTTP responses by the routers
"""


class QuizError(Exception):
    """Base class for all quiz domain errors"""


class NotFoundError(QuizError):
    """Session, question, team or submission does not exist"""


class InvalidInputError(QuizError):
    """Request is missing a required value or carries an invalid one"""


class ConflictError(QuizError):
    """Write rejected: version mismatch, duplicate submission or illegal transition"""


class StoreError(QuizError):
    """Document store operation failed"""
