class ServiceError(Exception):
    """Base error for the service; routes turn it into a JSON response."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class InvalidParameterError(ServiceError):
    """A query parameter failed to parse or is out of range."""

    status_code = 400


class UpstreamFetchError(ServiceError):
    """The remote dataset could not be fetched or has the wrong shape."""

    status_code = 500


class StoreOperationError(ServiceError):
    """A read, write or aggregate call against the store failed."""

    status_code = 500
