"""
Point Cloud Construction

CloudBuilder turns a completed LidarScan into a dense, organized point
cloud: one point per pixel, laid out (h, w) like the scan, including the
pixels that had no return. Those are written as the invalid point (all
coordinates zero, range zero) so the cloud shape never depends on how
many returns were valid.

The builder keeps no state between builds other than its preallocated
output, which it overwrites completely on every call.
"""

from dataclasses import dataclass

import numpy as np

from .geometry import cartesian

POINT_DTYPE = np.dtype(
    [
        ("x", np.float32),             # [m]
        ("y", np.float32),             # [m]
        ("z", np.float32),             # [m]
        ("intensity", np.float32),     # signal photons
        ("t", np.uint32),              # [ns] since the frame timestamp
        ("reflectivity", np.uint16),
        ("ring", np.uint16),           # pixel row (beam index)
        ("ambient", np.uint16),        # near-infrared photons
        ("range", np.uint32),          # raw range counts, 0 = no return
    ]
)


@dataclass
class PointCloud:
    """
    Organized point cloud for one revolution.

    :param points:    Structured array of POINT_DTYPE, shape (height, width).
    :param timestamp: Frame capture time [ns].
    :param frame_id:  Coordinate frame label.
    """
    points: np.ndarray   # (height, width) POINT_DTYPE
    timestamp: int = 0   # [ns]
    frame_id: str = ""

    @property
    def height(self):
        return self.points.shape[0]

    @property
    def width(self):
        return self.points.shape[1]

    def xyz(self):
        """Coordinates as a float32 array of shape (height, width, 3)."""
        return np.stack([self.points["x"], self.points["y"], self.points["z"]], axis=-1)

    def valid_mask(self):
        """Boolean (height, width) mask of pixels with a return."""
        return self.points["range"] != 0


class CloudBuilder:
    """
    Converts ready scans into point clouds using a fixed geometry table.

    :param lut:      XYZLut for the sensor; owned for the builder's lifetime.
    :param frame_id: Coordinate frame label stamped on every cloud.
    :param shape:    Expected scan shape (h, w). When given it must match
                     the table.
    """
    def __init__(self, lut, frame_id, shape=None):
        if shape is not None and tuple(shape) != tuple(lut.shape):
            raise ValueError(f"Lookup table shape {lut.shape} does not match scan shape {tuple(shape)}.")
        self._lut = lut
        self.frame_id = str(frame_id)
        self.shape = tuple(lut.shape)

        h = self.shape[0]
        self._rings = np.arange(h, dtype=np.uint16)[:, np.newaxis]  # row index per pixel
        self._cloud = PointCloud(np.zeros(self.shape, dtype=POINT_DTYPE), 0, self.frame_id)

    def build(self, scan, timestamp, override_ts=0):
        """
        Fill the cloud from a scan.

        Must only be called on a scan whose preprocessor reported ready.

        :param scan:        Completed LidarScan.
        :param timestamp:   Frame timestamp [ns] from the preprocessor.
        :param override_ts: [ns] if non-zero, stamped on the cloud instead of
                            timestamp. Per-point times stay relative to
                            timestamp.
        :return: The builder's PointCloud, overwritten by this call.
        :raises ValueError: If the scan shape does not match the table.
        """
        if scan.shape != self.shape:
            raise ValueError(f"Scan shape {scan.shape} does not match cloud shape {self.shape}.")

        xyz = cartesian(scan.range, self._lut)  # [m] (h, w, 3)
        points = self._cloud.points
        points["x"] = xyz[..., 0]
        points["y"] = xyz[..., 1]
        points["z"] = xyz[..., 2]
        points["intensity"] = scan.signal

        # Column capture time relative to the frame; zeroed columns clamp to 0.
        column_dt = scan.timestamp.astype(np.int64) - int(timestamp)
        column_dt = np.clip(column_dt, 0, np.iinfo(np.uint32).max).astype(np.uint32)
        points["t"] = column_dt[np.newaxis, :]

        points["reflectivity"] = scan.reflectivity
        points["ring"] = self._rings
        points["ambient"] = scan.near_ir
        points["range"] = scan.range

        self._cloud.timestamp = int(override_ts) if override_ts else int(timestamp)
        self._cloud.frame_id = self.frame_id
        return self._cloud
