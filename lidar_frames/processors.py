"""
Data Processors

Processors are the consumers of preprocessed data. They run after the
preprocessors on every packet, ask whether a result is ready and, if so,
turn it into an output artifact and hand it to a publish callback.

Publishing follows the host lifecycle: outputs are only handed out between
on_activate() and on_deactivate(). Building still happens while inactive
so that the readiness query keeps the preprocessors activated.
"""

import logging

from .cloud import CloudBuilder
from .geometry import make_xyz_lut

logger = logging.getLogger(__name__)


class DataProcessor:
    """Base class for processors driven once per packet."""
    def __init__(self):
        self._active = False

    @property
    def active(self):
        return self._active

    def process(self, packet, override_ts=0):
        """
        Handle one packet after the preprocessors have seen it.

        :param packet:      bytes-like raw packet.
        :param override_ts: [ns] timestamp override, 0 to use the data's own.
        :return: True once handled.
        """
        raise NotImplementedError

    def on_activate(self):
        self._active = True

    def on_deactivate(self):
        self._active = False


class PointcloudProcessor(DataProcessor):
    """
    Builds a point cloud whenever the lidar scan preprocessor has a full revolution.

    :param info:     SensorInfo for the sensor.
    :param frame_id: Coordinate frame label for the clouds.
    :param manager:  PreprocessorManager owning the lidar scan preprocessor.
    :param publish:  Optional callable receiving each PointCloud while active.
    """
    def __init__(self, info, frame_id, manager, publish=None):
        super().__init__()
        self._preprocessor = manager.get_lidarscan_preprocessor()
        self._builder = CloudBuilder(make_xyz_lut(info), frame_id, shape=info.shape)
        self._publish = publish
        self.last_cloud = None

    def process(self, packet, override_ts=0):
        if not self._preprocessor.is_data_ready():
            return True

        # Read scan and timestamp together, before the next packet can touch them.
        scan = self._preprocessor.get_data()
        timestamp = self._preprocessor.get_timestamp()
        self.last_cloud = self._builder.build(scan, timestamp, override_ts)

        if self._active and self._publish is not None:
            self._publish(self.last_cloud)
        return True
