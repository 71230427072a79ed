from .config import Config
from .stub import ResponseSpec, Stub

__all__ = ["Config", "ResponseSpec", "Stub"]
