__all__ = [
    "DEFAULT_FAILURE_WINDOW",
    "DEFAULT_WAIT_DELAY",
    "DEFAULT_XSRF_COOKIE_NAME",
    "DEFAULT_XSRF_HEADER_NAME",
    "ECONNABORTED",
    "ENV_PREFIX",
    "TIMEOUT_MESSAGE",
]

# Milliseconds between a response being decided and being delivered.
DEFAULT_WAIT_DELAY = 1

# Milliseconds a failure stub waits for a matching request before rejecting.
DEFAULT_FAILURE_WINDOW = 500

ECONNABORTED = "ECONNABORTED"
TIMEOUT_MESSAGE = "timeout of {timeout}ms exceeded"

DEFAULT_XSRF_COOKIE_NAME = "XSRF-TOKEN"
DEFAULT_XSRF_HEADER_NAME = "X-XSRF-TOKEN"

ENV_PREFIX = "STUBPORT_"
