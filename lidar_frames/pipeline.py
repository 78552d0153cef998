"""
Scan Pipeline

Wires the pieces for one sensor: packet format, preprocessor manager and
processors. handle_packet() is the single per-packet entry point a packet
source calls; it runs the preprocessors and then the processors to
completion before returning.
"""

import logging

from .packet_format import PacketFormat
from .preprocessors import PreprocessorManager
from .processors import DataProcessor, PointcloudProcessor
from .sensor_info import SensorInfo

logger = logging.getLogger(__name__)


class ScanPipeline:
    """
    Packet-to-point-cloud pipeline for one sensor.

    :param info:    SensorInfo, or a SensorConfig-compatible object.
    :param publish: Optional callable receiving each PointCloud while active.
    """
    def __init__(self, info, publish=None):
        self.info = info if isinstance(info, SensorInfo) else SensorInfo(info)
        self.packet_format = PacketFormat.from_info(self.info)
        self.manager = PreprocessorManager(self.info, self.packet_format)
        self.pointcloud = PointcloudProcessor(self.info, self.info.frame_id, self.manager, publish=publish)
        self._processors = [self.pointcloud]
        logger.debug(
            "Pipeline ready: %dx%d, %d-byte packets.",
            self.info.pixels_per_column,
            self.info.columns_per_frame,
            self.packet_format.lidar_packet_size,
        )

    def add_processor(self, processor):
        """Register an extra processor; it runs after the existing ones."""
        if not isinstance(processor, DataProcessor):
            raise TypeError("ScanPipeline accepts DataProcessor instances.")
        self._processors.append(processor)

    def handle_packet(self, packet, override_ts=0):
        """
        Run one packet through the preprocessors, then the processors.

        :param packet:      bytes-like raw packet.
        :param override_ts: [ns] timestamp override, 0 to use the packet's own.
        :return: True if every preprocessor handled the packet.
        """
        ok = self.manager.preprocess(packet, override_ts)
        for processor in self._processors:
            processor.process(packet, override_ts)
        return ok

    def on_activate(self):
        for processor in self._processors:
            processor.on_activate()

    def on_deactivate(self):
        for processor in self._processors:
            processor.on_deactivate()
