from .structured import JSONLineFormatter, configure_logging

__all__ = ["JSONLineFormatter", "configure_logging"]
