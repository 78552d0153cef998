"""
LidarScan Buffer

A LidarScan is the reassembly target for one revolution: a staggered range
image of ``pixels_per_column`` rows by ``columns_per_frame`` columns plus
one header per column. All arrays are allocated once and overwritten in
place as packets stream in; the buffer is never resized.
"""

import numpy as np

from .math_utils import _as_positive_int


class LidarScan:
    """
    Fixed-size scan buffer.

    Channel arrays have shape (h, w), header arrays shape (w,):

        range           u32  [range counts], 0 means no return
        signal          u16  signal photons (cloud intensity)
        reflectivity    u16  calibrated reflectivity
        near_ir         u16  ambient near-infrared photons

        timestamp       u64  [ns] column capture time, 0 when missing
        measurement_id  u16  column index inside the revolution
        frame_id        u16  revolution counter
        encoder         u32  encoder count
        status          u32  column status word

    :param w: Columns per frame.
    :param h: Pixels per column.
    """
    CHANNELS = ("range", "signal", "reflectivity", "near_ir")

    def __init__(self, w, h):
        self.w = _as_positive_int(w, "w")
        self.h = _as_positive_int(h, "h")

        self.range = np.zeros((self.h, self.w), dtype=np.uint32)
        self.signal = np.zeros((self.h, self.w), dtype=np.uint16)
        self.reflectivity = np.zeros((self.h, self.w), dtype=np.uint16)
        self.near_ir = np.zeros((self.h, self.w), dtype=np.uint16)

        self.timestamp = np.zeros(self.w, dtype=np.uint64)
        self.measurement_id = np.zeros(self.w, dtype=np.uint16)
        self.frame_id_headers = np.zeros(self.w, dtype=np.uint16)
        self.encoder = np.zeros(self.w, dtype=np.uint32)
        self.status = np.zeros(self.w, dtype=np.uint32)

        # Revolution counter of the frame being batched, -1 before the first packet.
        self.frame_id = -1

    @property
    def shape(self):
        return self.h, self.w

    def zero_columns(self, columns):
        """
        Clear channel data and headers of the selected columns.

        :param columns: Column selector, a slice or an integer index array.
        """
        for name in self.CHANNELS:
            getattr(self, name)[:, columns] = 0
        self.timestamp[columns] = 0
        self.measurement_id[columns] = 0
        self.frame_id_headers[columns] = 0
        self.encoder[columns] = 0
        self.status[columns] = 0

    def first_valid_timestamp(self):
        """
        Timestamp of the first column whose header timestamp is non-zero.

        :return: int [ns], or None if every column timestamp is zero.
        """
        nonzero = np.flatnonzero(self.timestamp)
        if nonzero.size == 0:
            return None
        return int(self.timestamp[nonzero[0]])
