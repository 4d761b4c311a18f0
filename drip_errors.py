"""Error kinds raised by the drip flow. Only the __main__ guard catches them."""


class DripError(Exception):
    pass


class ConfigurationError(DripError):
    """Missing or invalid config value / user input."""


class ServiceError(DripError):
    """Third-party service answered with something we can't use."""


class CaptchaTimeoutError(DripError, TimeoutError):
    pass


class ProtocolError(DripError):
    """Faucet backend response lacks the challenge or bearer token."""


class ChainError(DripError):
    pass


class HttpError(DripError):
    def __init__(self, url, status_code, body=""):
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code} from {url}: {body[:200]}")
