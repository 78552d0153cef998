"""
Geometry Lookup Table

Converting a range image into Cartesian points only needs one multiply-add
per pixel once the per-pixel geometry is known:

    point = range * direction + offset      (range != 0)
    point = (0, 0, 0)                       (range == 0, no return)

XYZLut stores ``direction`` and ``offset`` for every (row, column) pixel.
make_xyz_lut() derives them from the sensor intrinsics:

    theta_e = 2*pi - v * 2*pi / w          encoder angle of column v
    theta_a = -azimuth_deg[u]               beam azimuth offset of row u
    phi     = altitude_deg[u]               beam elevation of row u

    direction = (cos(theta_e + theta_a) * cos(phi),
                 sin(theta_e + theta_a) * cos(phi),
                 sin(phi))
    offset    = beam_origin_mm * (cos(theta_e) - direction_x,
                                  sin(theta_e) - direction_y,
                                  -direction_z)

Both are then rotated by the lidar-to-sensor transform, the offset is
translated by it, and both are scaled by range_unit so that raw range
counts map straight to metres.
"""

import numpy as np


class XYZLut:
    """
    Per-pixel unit directions and offsets, read-only after construction.

    :param direction: Array of shape (h, w, 3), direction per range count.
    :param offset:    Array of shape (h, w, 3), offset added to valid points.
    """
    def __init__(self, direction, offset):
        direction = np.array(direction, dtype=float)  # copy: the caller keeps its arrays
        offset = np.array(offset, dtype=float)
        if direction.ndim != 3 or direction.shape[2] != 3:
            raise ValueError("direction must have shape (h, w, 3).")
        if offset.shape != direction.shape:
            raise ValueError("offset must have the same shape as direction.")

        direction.setflags(write=False)
        offset.setflags(write=False)
        self.direction = direction
        self.offset = offset

    @property
    def shape(self):
        """Image shape (h, w) this table covers."""
        return self.direction.shape[:2]


def make_xyz_lut(info):
    """
    Build the geometry lookup table for a sensor.

    :param info: SensorInfo (frame shape, beam angles, beam origin offset,
                 lidar-to-sensor transform and range unit).
    :return: XYZLut of shape (pixels_per_column, columns_per_frame).
    """
    h, w = info.pixels_per_column, info.columns_per_frame

    # Encoder angle per column, decreasing clockwise from a full turn.
    encoder = 2.0 * np.pi - np.arange(w, dtype=float) * (2.0 * np.pi / w)  # [rad], shape (w,)
    encoder = encoder[np.newaxis, :]
    azimuth = -np.deg2rad(info.beam_azimuth_angles)[:, np.newaxis]  # [rad], shape (h, 1)
    altitude = np.deg2rad(info.beam_altitude_angles)[:, np.newaxis]  # [rad], shape (h, 1)

    # Unit beam directions in the lidar frame.
    direction = np.empty((h, w, 3), dtype=float)
    direction[..., 0] = np.cos(encoder + azimuth) * np.cos(altitude)
    direction[..., 1] = np.sin(encoder + azimuth) * np.cos(altitude)
    direction[..., 2] = np.sin(altitude)

    # Beams leave from a ring around the lidar origin, not the origin itself.
    offset = np.empty((h, w, 3), dtype=float)
    offset[..., 0] = np.cos(encoder) - direction[..., 0]
    offset[..., 1] = np.sin(encoder) - direction[..., 1]
    offset[..., 2] = -direction[..., 2]
    offset *= info.lidar_origin_to_beam_origin_mm  # [mm]

    # Move both into the sensor frame.
    transform = info.lidar_to_sensor_transform
    rotation = transform[:3, :3]
    translation = transform[:3, 3]  # [mm]
    direction = direction @ rotation.T
    offset = offset @ rotation.T + translation

    # Scale to output units per range count.
    return XYZLut(direction * info.range_unit, offset * info.range_unit)


def cartesian(range_image, lut):
    """
    Convert a range image into Cartesian points.

    :param range_image: Integer range counts, shape (h, w).
    :param lut:         XYZLut with the same (h, w).
    :return: float64 array of shape (h, w, 3). Pixels with zero range map to
             the origin.
    :raises ValueError: If the range image and the table disagree in shape.
    """
    range_image = np.asarray(range_image)
    if range_image.shape != lut.shape:
        raise ValueError(f"Range image shape {range_image.shape} does not match lookup table shape {lut.shape}.")

    counts = range_image.astype(float)[..., np.newaxis]
    points = counts * lut.direction + lut.offset
    # No return: canonical invalid point at the origin.
    return np.where(counts != 0.0, points, 0.0)
