class AdvisoryError(Exception):
    """Base error; carries the HTTP status the route should answer with."""

    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(AdvisoryError):
    status_code = 404


class ForbiddenError(AdvisoryError):
    status_code = 403


class ValidationError(AdvisoryError):
    status_code = 400

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(" ".join(self.errors))


class UpstreamError(AdvisoryError):
    """Failure reported by the identity API or the image host."""

    status_code = 502

    def __init__(self, code, message=None, status_code=None):
        self.code = code
        super().__init__(message or code, status_code)
