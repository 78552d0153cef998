"""
Sensor Description

SensorInfo holds everything about the sensor that the scan pipeline needs
and that does not change while it runs: frame shape, packet shape, range
scaling, per-beam intrinsics and the lidar-to-sensor extrinsic transform.

It is built either from a SensorConfig-compatible object (class or
instance) or from a vendor metadata JSON document. Any change to these
values means rebuilding the whole pipeline, so every value is validated
here and the resulting arrays are frozen.
"""

import json
import logging
from pathlib import Path

import numpy as np

from .Config import SensorConfig
from .math_utils import _as_angle_table, _as_positive_int, _as_transform_matrix

logger = logging.getLogger(__name__)


class SensorInfo:
    """
    Validated, read-only sensor description.

    :param config: Class or instance with SensorConfig-compatible attributes.
    """
    def __init__(self, config=SensorConfig):
        # ---------- frame and packet shape ----------
        self.pixels_per_column = _as_positive_int(config.pixels_per_column, "pixels_per_column")
        self.columns_per_frame = _as_positive_int(config.columns_per_frame, "columns_per_frame")
        self.columns_per_packet = _as_positive_int(
            getattr(config, "columns_per_packet", SensorConfig.columns_per_packet), "columns_per_packet"
        )
        if self.columns_per_frame % self.columns_per_packet != 0:
            raise ValueError("columns_per_frame must be a multiple of columns_per_packet.")
        # Revolutions are cut when the column index wraps, which needs at least two packets per frame.
        if self.columns_per_frame <= self.columns_per_packet:
            raise ValueError("columns_per_frame must be greater than columns_per_packet.")

        # ---------- range scaling ----------
        self.range_unit = float(getattr(config, "range_unit", SensorConfig.range_unit))  # [m per count]
        if not self.range_unit > 0.0:
            raise ValueError("range_unit must be > 0.")

        # ---------- beam intrinsics ----------
        self.beam_altitude_angles = _as_angle_table(
            config.beam_altitude_angles, "beam_altitude_angles", self.pixels_per_column
        )  # [deg]
        self.beam_azimuth_angles = _as_angle_table(
            config.beam_azimuth_angles, "beam_azimuth_angles", self.pixels_per_column
        )  # [deg]
        self.lidar_origin_to_beam_origin_mm = float(
            getattr(config, "lidar_origin_to_beam_origin_mm", 0.0)
        )  # [mm]
        if self.lidar_origin_to_beam_origin_mm < 0.0:
            raise ValueError("lidar_origin_to_beam_origin_mm must be >= 0.")

        # ---------- extrinsics ----------
        raw_transform = getattr(config, "lidar_to_sensor_transform", None)
        self.lidar_to_sensor_transform = (
            np.eye(4, dtype=float) if raw_transform is None
            else _as_transform_matrix(raw_transform, "lidar_to_sensor_transform")
        )

        self.frame_id = str(getattr(config, "frame_id", SensorConfig.frame_id))
        if not self.frame_id:
            raise ValueError("frame_id must be a non-empty string.")

        # Freeze the tables so that every consumer shares the same values.
        for table in (self.beam_altitude_angles, self.beam_azimuth_angles, self.lidar_to_sensor_transform):
            table.setflags(write=False)

    @property
    def shape(self):
        """Scan image shape as (pixels_per_column, columns_per_frame)."""
        return self.pixels_per_column, self.columns_per_frame

    @classmethod
    def from_metadata(cls, metadata, frame_id=SensorConfig.frame_id):
        """
        Build a SensorInfo from a vendor metadata document.

        The document layout is the flat JSON written by the sensor: beam
        angle tables, ``lidar_mode`` such as ``"1024x10"``, the beam origin
        offset, a 16-element row-major ``lidar_to_sensor_transform`` and an
        optional ``data_format`` block carrying the exact frame and packet
        shape. When ``data_format`` is missing, the column count comes from
        ``lidar_mode`` and the remaining values fall back to SensorConfig.

        :param metadata: Parsed dict, JSON string, or path to a JSON file.
        :param frame_id: Coordinate frame label for output clouds.
        :return: SensorInfo.
        """
        if isinstance(metadata, Path) or (isinstance(metadata, str) and not metadata.lstrip().startswith("{")):
            logger.debug("Reading sensor metadata from %s", metadata)
            metadata = json.loads(Path(metadata).read_text())
        elif isinstance(metadata, str):
            metadata = json.loads(metadata)

        data_format = metadata.get("data_format", {})
        attrs = {"frame_id": frame_id}

        if "columns_per_frame" in data_format:
            attrs["columns_per_frame"] = data_format["columns_per_frame"]
        elif "lidar_mode" in metadata:
            # "1024x10" -> 1024 columns at 10 Hz
            attrs["columns_per_frame"] = int(str(metadata["lidar_mode"]).split("x")[0])

        if "pixels_per_column" in data_format:
            attrs["pixels_per_column"] = data_format["pixels_per_column"]
        elif "beam_altitude_angles" in metadata:
            attrs["pixels_per_column"] = len(metadata["beam_altitude_angles"])

        if "columns_per_packet" in data_format:
            attrs["columns_per_packet"] = data_format["columns_per_packet"]

        for key in (
            "beam_altitude_angles",
            "beam_azimuth_angles",
            "lidar_origin_to_beam_origin_mm",
            "lidar_to_sensor_transform",
        ):
            if key in metadata:
                attrs[key] = metadata[key]

        # Anything the document leaves out keeps the SensorConfig default.
        config = type("MetadataConfig", (SensorConfig,), attrs)
        return cls(config)
