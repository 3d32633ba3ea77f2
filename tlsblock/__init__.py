"""Block TLS connections by server name by injecting TCP resets."""

__version__ = "0.1.0"
__all__ = ["mac", "ip", "headers", "sni", "blocker"]