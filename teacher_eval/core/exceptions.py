"""
Errors raised by the services and turned into HTTP responses in main.py.

- InputError     -> 400, bad or missing request data
- AdminRequired  -> redirect to the login route
- Forbidden      -> 403, privileged operation without the admin cookie
- NotFound       -> 404
- ImportFailed   -> 422, workbook could not be imported (nothing committed)
- BackupError    -> 500, backup/restore I/O failed
"""

from typing import Optional


class SurveyError(Exception):
    """Base error for the evaluation service"""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class InputError(SurveyError):
    status_code = 400


class AdminRequired(SurveyError):
    status_code = 303

    def __init__(self, message: str = "Admin session required"):
        super().__init__(message)


class Forbidden(SurveyError):
    status_code = 403

    def __init__(self, message: str = "Admin privileges required"):
        super().__init__(message)


class NotFound(SurveyError):
    status_code = 404


class ImportFailed(SurveyError):
    status_code = 422


class BackupError(SurveyError):
    status_code = 500
