"""Media relay control-plane client."""

from camrelay.relay.client import RelayClient, RelayError, RelayRejected, RelayUnreachable

__all__ = ["RelayClient", "RelayError", "RelayRejected", "RelayUnreachable"]
