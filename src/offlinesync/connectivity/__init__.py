from .monitor import ConnectivityMonitor, ConnectivityState, MonitorPolicy
from .probe import ConnectivityProbe, HttpConnectivityProbe

__all__ = [
    "ConnectivityMonitor",
    "ConnectivityState",
    "MonitorPolicy",
    "ConnectivityProbe",
    "HttpConnectivityProbe",
]
