class OrderFormError(Exception):
    """Base class for everything the order intake can raise."""


class ValidationError(OrderFormError):
    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field


class WizardStateError(OrderFormError):
    pass


class CatalogError(OrderFormError):
    pass


class ApiError(OrderFormError):
    def __init__(self, message, status_code=None, details=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class SubmissionError(OrderFormError):
    user_message = "Não foi possível enviar a encomenda. Por favor tente novamente."

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


class SubmissionInProgress(OrderFormError):
    pass


class NotificationError(OrderFormError):
    pass
