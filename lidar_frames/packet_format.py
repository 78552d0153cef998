"""
Lidar Packet Format

Describes the byte layout of one lidar packet and parses raw buffers into
numpy views without copying.

A packet carries ``columns_per_packet`` consecutive columns of one
revolution. Each column is laid out as (little-endian):

    header   16 bytes   timestamp u64 [ns], measurement_id u16,
                        frame_id u16, encoder u32
    pixels   12 bytes   range u32 (low 20 bits, [mm]), reflectivity u16,
             per beam   signal u16, near_ir u16, unused u16
    footer    4 bytes   status u32 (0xffffffff when the column is valid)

The layout is expressed as numpy structured dtypes so that a packet can be
read (and, for testing, written) field by field.
"""

import numpy as np

from .math_utils import _as_positive_int

# Only the low 20 bits of the range word hold the range; the rest are flags.
RANGE_MASK = 0x000FFFFF
# Column footer value marking a column whose data is usable.
VALID_COLUMN_STATUS = 0xFFFFFFFF

PIXEL_DTYPE = np.dtype(
    [
        ("range", "<u4"),
        ("reflectivity", "<u2"),
        ("signal", "<u2"),
        ("near_ir", "<u2"),
        ("unused", "<u2"),
    ]
)


class PacketFormat:
    """
    Byte layout of a lidar packet for a given beam count and packet width.

    :param pixels_per_column:  Beams per column.
    :param columns_per_packet: Columns carried by one packet.
    """
    COLUMN_HEADER_SIZE = 16  # [bytes]
    COLUMN_FOOTER_SIZE = 4   # [bytes]

    def __init__(self, pixels_per_column, columns_per_packet):
        self.pixels_per_column = _as_positive_int(pixels_per_column, "pixels_per_column")
        self.columns_per_packet = _as_positive_int(columns_per_packet, "columns_per_packet")

        self.column_dtype = np.dtype(
            [
                ("timestamp", "<u8"),
                ("measurement_id", "<u2"),
                ("frame_id", "<u2"),
                ("encoder", "<u4"),
                ("pixels", PIXEL_DTYPE, (self.pixels_per_column,)),
                ("status", "<u4"),
            ]
        )
        self.column_size = self.column_dtype.itemsize  # [bytes]
        self.lidar_packet_size = self.columns_per_packet * self.column_size  # [bytes]

    @classmethod
    def from_info(cls, info):
        """Packet format matching a SensorInfo."""
        return cls(info.pixels_per_column, info.columns_per_packet)

    def parse(self, packet):
        """
        View a raw packet as an array of columns.

        :param packet: bytes-like object holding exactly one packet.
        :return: Read-only structured array of shape (columns_per_packet,),
                 or None when the buffer size does not match this format.
        """
        buf = np.frombuffer(packet, dtype=np.uint8)
        if buf.size != self.lidar_packet_size:
            return None
        return buf.view(self.column_dtype)

    def empty_columns(self):
        """Writable, zeroed column array; ``.tobytes()`` gives a packet."""
        return np.zeros(self.columns_per_packet, dtype=self.column_dtype)

    @staticmethod
    def ranges(columns):
        """Masked range counts of parsed columns, shape (pixels, columns)."""
        return (columns["pixels"]["range"] & RANGE_MASK).T
