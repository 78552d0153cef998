"""Error types raised by the scan pipeline."""


class LidarDriverError(RuntimeError):
    """Base class for runtime errors raised while handling sensor data."""


class NotReadyError(LidarDriverError):
    """
    Raised when preprocessed data is requested before a revolution is complete.

    Recoverable: the caller should re-check is_data_ready() and try again on a
    later packet.
    """
