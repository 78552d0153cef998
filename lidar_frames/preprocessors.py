"""
Data Preprocessors

Preprocessors turn raw packets into data that processors consume. Each one
owns its output buffer and gates access to it behind a readiness flag, so a
consumer only reads a buffer that holds a complete, unchanging result.

Activation: a preprocessor ignores every packet until its readiness has
been queried once. The first is_data_ready() call is what switches a
cold-started pipeline on; packets before that are dropped and reported as
handled, so a consumer that subscribes late never sees a half-written
revolution.

The PreprocessorManager owns the preprocessors and fans every packet out
to all of them in registration order.
"""

import logging

from .batcher import ScanBatcher
from .exceptions import NotReadyError
from .lidar_scan import LidarScan

logger = logging.getLogger(__name__)


class DataPreprocessor:
    """
    Base class for preprocessors: activation and readiness state machine.

    Subclasses implement _handle(), which consumes one packet and returns
    True when it completed a new result, and _current_data() /
    _current_timestamp(), which expose that result.
    """
    def __init__(self):
        self._activated = False   # latched by the first readiness query
        self._data_ready = False  # a complete result is readable

    @property
    def activated(self):
        """Whether the preprocessor has been activated. Reading this does not activate it."""
        return self._activated

    def _activate_if_needed(self):
        if not self._activated:
            logger.info("%s activated.", self.__class__.__name__)
            self._activated = True

    def is_data_ready(self):
        """
        Report whether a complete result is available.

        The first call also activates the preprocessor; later calls leave
        the activation flag unchanged.

        :return: True if get_data() / get_timestamp() may be called.
        """
        self._activate_if_needed()
        return self._data_ready

    def preprocess(self, packet, override_ts=0):
        """
        Consume one packet.

        Before activation the packet is dropped. After activation readiness
        is cleared first, since the buffer is about to change, and set again
        only if this packet completed a result.

        :param packet:      bytes-like raw packet.
        :param override_ts: [ns] timestamp override, 0 to use the packet's own.
        :return: True once the packet has been handled (or dropped).
        """
        if not self._activated:
            return True

        self._data_ready = False
        if self._handle(packet, override_ts):
            self._data_ready = True
        return True

    def get_data(self):
        """
        Return the completed result.

        :raises NotReadyError: If no complete result is available.
        """
        self._require_ready()
        return self._current_data()

    def get_timestamp(self):
        """
        Return the completed result's timestamp [ns].

        :raises NotReadyError: If no complete result is available.
        """
        self._require_ready()
        return self._current_timestamp()

    def _require_ready(self):
        if not self._data_ready:
            raise NotReadyError("Preprocessor data not ready.")

    def _handle(self, packet, override_ts):
        raise NotImplementedError

    def _current_data(self):
        raise NotImplementedError

    def _current_timestamp(self):
        raise NotImplementedError


class LidarScanPreprocessor(DataPreprocessor):
    """
    Batches lidar packets into a LidarScan.

    :param info:          SensorInfo describing the frame shape.
    :param packet_format: PacketFormat of the incoming packets.
    """
    def __init__(self, info, packet_format):
        super().__init__()
        if packet_format.pixels_per_column != info.pixels_per_column:
            raise ValueError("packet_format.pixels_per_column does not match the sensor description.")
        self._batch = ScanBatcher(info.columns_per_frame, packet_format)
        self._scan = LidarScan(info.columns_per_frame, info.pixels_per_column)
        self._timestamp = 0  # [ns]

    def _handle(self, packet, override_ts):
        if not self._batch.ingest(packet, self._scan):
            return False

        # The frame is stamped with its first column that carries a time.
        timestamp = self._scan.first_valid_timestamp()
        if timestamp is not None:
            self._timestamp = timestamp
        return True

    def _current_data(self):
        return self._scan

    def _current_timestamp(self):
        return self._timestamp


class PreprocessorManager:
    """
    Owns the preprocessors and forwards every packet to each of them.

    Consumers hold plain references to preprocessors obtained from the
    accessors; the manager must outlive them.

    :param info:          SensorInfo for the sensor.
    :param packet_format: PacketFormat of the incoming packets.
    """
    LIDARSCAN = "lidarscan"

    def __init__(self, info, packet_format):
        self._preprocessors = {}  # name -> DataPreprocessor, in registration order
        self.register(self.LIDARSCAN, LidarScanPreprocessor(info, packet_format))

    def register(self, name, preprocessor):
        """
        Add a preprocessor under a unique name.

        :raises TypeError: If preprocessor is not a DataPreprocessor.
        :raises ValueError: If the name is already taken.
        """
        if not isinstance(preprocessor, DataPreprocessor):
            raise TypeError("PreprocessorManager accepts DataPreprocessor instances.")
        if name in self._preprocessors:
            raise ValueError(f"A preprocessor named '{name}' is already registered.")
        self._preprocessors[name] = preprocessor

    def preprocess(self, packet, override_ts=0):
        """
        Pass a packet to every preprocessor in registration order.

        A preprocessor that raises is logged and skipped; the remaining ones
        still receive the packet.

        :return: True if every preprocessor handled the packet.
        """
        all_ok = True
        for name, preprocessor in self._preprocessors.items():
            try:
                ok = preprocessor.preprocess(packet, override_ts)
            except Exception:
                logger.exception("Preprocessor '%s' failed on packet.", name)
                ok = False
            all_ok = all_ok and bool(ok)
        return all_ok

    def get(self, name):
        """Return the preprocessor registered under name (KeyError if absent)."""
        return self._preprocessors[name]

    def get_lidarscan_preprocessor(self):
        return self._preprocessors[self.LIDARSCAN]

    def names(self):
        return list(self._preprocessors)
