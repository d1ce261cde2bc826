class QuizSessionError(Exception):
    """Base class for errors the API reports back to the client."""

    status_code = 400
    code = "quiz_session_error"

    def __init__(self, message=None, view=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__
        self.view = view

    def to_dict(self):
        payload = {"error": self.code, "detail": self.message}
        if self.view is not None:
            payload["session"] = self.view.to_dict()
        return payload


class QuizNotFound(QuizSessionError):
    """Quiz not found."""

    status_code = 404
    code = "quiz_not_found"


class AttemptNotFound(QuizSessionError):
    """No attempt exists for this quiz."""

    status_code = 404
    code = "attempt_not_found"


class QuizNotOpen(QuizSessionError):
    """Quiz has not started yet."""

    status_code = 403
    code = "quiz_not_open"


class QuizClosed(QuizSessionError):
    """Quiz has ended."""

    status_code = 403
    code = "quiz_closed"


class InvalidOption(QuizSessionError):
    """Invalid option for this question."""

    status_code = 400
    code = "invalid_option"


class DeadlinePassed(QuizSessionError):
    """Time is over; the answer was not saved."""

    status_code = 409
    code = "deadline_passed"


class AlreadySubmitted(QuizSessionError):
    """You have already submitted this quiz."""

    status_code = 409
    code = "already_submitted"


class Forbidden(QuizSessionError):
    """Only the quiz creator can do this."""

    status_code = 403
    code = "forbidden"


class QuizHasAttempts(QuizSessionError):
    """Quiz already has attempts and cannot be deleted."""

    status_code = 409
    code = "quiz_has_attempts"


class StoreUnavailable(QuizSessionError):
    """Attempt storage is unavailable, try again."""

    status_code = 503
    code = "store_unavailable"
