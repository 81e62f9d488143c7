"""
Exceptions raised by the Dockmon collaborators and state layer
"""


class DockmonError(Exception):
    """Base class for every error raised by dockmon"""


class ConfigError(DockmonError, ValueError):
    """Configuration file is missing fields or holds invalid values"""


class StateError(DockmonError):
    """A state file could not be read, parsed or written"""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class DeliveryError(DockmonError):
    """An alert email could not be rendered or sent"""


class ContainerRuntimeError(DockmonError):
    """The container runtime could not be queried"""
