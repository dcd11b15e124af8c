"""
Connectivity oracles: zero-argument callables answering "is the client online?".
"""

import socket
from loguru import logger


class StaticConnectivity:
    """Always reports the same answer."""

    def __init__(self, online: bool = True):
        self.online = online

    def __call__(self) -> bool:
        return self.online


class SocketConnectivityOracle:
    """Reports online when a TCP connection to the provider host can be opened."""

    def __init__(self, host: str = "api.openai.com", port: int = 443, timeout: float = 2.0):
        self.host = host
        self.port = port
        self.timeout = timeout

    def __call__(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError as e:
            logger.warning(f"Connectivity check to {self.host}:{self.port} failed: {e}")
            return False
