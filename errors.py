class VibeError(Exception):
    status = 500

    def __init__(self, message, status=None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class ValidationError(VibeError):
    status = 400


class NotFoundError(VibeError):
    status = 404


class ConfigurationError(VibeError):
    status = 500


class UpstreamError(VibeError):
    status = 502
