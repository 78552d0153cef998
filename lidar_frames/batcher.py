"""
Scan Batcher

Reassembles a stream of lidar packets into whole revolutions.

Packets carry no end-of-frame marker. A revolution is cut when a packet
arrives whose column index (measurement_id) is lower than the highest
column written since the last cut, i.e. the column index wrapped around to
the start of the next revolution. This only holds for in-order delivery.

The packet that wraps around belongs to the next revolution. It is kept
aside and written first thing on the following call, so the buffer handed
out after a cut holds exactly one revolution. Columns that never arrived
are zeroed rather than left holding data from an older revolution.
"""

import logging

import numpy as np

from .math_utils import _as_positive_int
from .packet_format import VALID_COLUMN_STATUS, PacketFormat

logger = logging.getLogger(__name__)


class ScanBatcher:
    """
    Stateful packet-to-scan reassembler.

    :param columns_per_frame: Columns in one revolution.
    :param packet_format:     PacketFormat of the incoming packets.
    """
    def __init__(self, columns_per_frame, packet_format):
        self.w = _as_positive_int(columns_per_frame, "columns_per_frame")
        self.h = packet_format.pixels_per_column
        self._pf = packet_format
        if self.w % packet_format.columns_per_packet != 0:
            raise ValueError("columns_per_frame must be a multiple of columns_per_packet.")
        if self.w <= packet_format.columns_per_packet:
            raise ValueError("columns_per_frame must be greater than columns_per_packet.")

        # ---------- batching state ----------
        self._next_m_id = 0      # first column index not yet written this revolution
        self._last_m_id = -1     # highest column index written since the last cut, -1 = none
        self._pending = None     # columns of the packet that wrapped around

    def ingest(self, packet, scan):
        """
        Write one packet into the scan buffer.

        :param packet: bytes-like raw packet.
        :param scan:   LidarScan to batch into, shape (h, w).
        :return: True exactly when this packet completed a revolution.
        :raises ValueError: If the scan shape does not match this batcher.
        """
        if scan.shape != (self.h, self.w):
            raise ValueError(f"Scan shape {scan.shape} does not match batcher shape {(self.h, self.w)}.")

        columns = self._pf.parse(packet)
        if columns is None:
            logger.debug("Dropping packet: expected %d bytes.", self._pf.lidar_packet_size)
            return False

        # Drop invalid columns and columns outside this frame width.
        usable = (columns["status"] == VALID_COLUMN_STATUS) & (columns["measurement_id"] < self.w)
        if not usable.any():
            logger.debug("Dropping packet: no valid columns.")
            return False
        columns = columns[usable]

        # Start the next revolution with the packet that closed the previous one.
        if self._pending is not None:
            pending, self._pending = self._pending, None
            self._start_frame(scan)
            self._write(pending, scan)

        m_id = int(columns["measurement_id"][0])
        if m_id < self._last_m_id:
            # Wrapped around: whatever is still missing at the end never arrived.
            scan.zero_columns(slice(self._next_m_id, self.w))
            self._pending = columns.copy()
            logger.debug("Revolution %d complete at column %d.", scan.frame_id, self._last_m_id)
            self._last_m_id = -1
            return True

        self._write(columns, scan)
        return False

    def _start_frame(self, scan):
        """Reset the per-revolution cursor before batching a new revolution."""
        self._next_m_id = 0
        self._last_m_id = -1
        scan.frame_id = -1

    def _write(self, columns, scan):
        """
        Copy usable columns into the scan at their measurement_id.

        Any column index between the write cursor and the highest index in
        this packet that the packet does not carry is zeroed.

        :param columns: Structured column array (usable columns only).
        :param scan:    LidarScan to write into.
        """
        m_ids = columns["measurement_id"].astype(np.intp)
        highest = int(m_ids.max())

        # Columns skipped over since the last write were lost in transit.
        missing = np.setdiff1d(np.arange(self._next_m_id, highest + 1), m_ids)
        if missing.size:
            scan.zero_columns(missing)

        if scan.frame_id == -1:
            scan.frame_id = int(columns["frame_id"][0])

        pixels = columns["pixels"]
        scan.range[:, m_ids] = PacketFormat.ranges(columns)
        scan.signal[:, m_ids] = pixels["signal"].T
        scan.reflectivity[:, m_ids] = pixels["reflectivity"].T
        scan.near_ir[:, m_ids] = pixels["near_ir"].T

        scan.timestamp[m_ids] = columns["timestamp"]
        scan.measurement_id[m_ids] = columns["measurement_id"]
        scan.frame_id_headers[m_ids] = columns["frame_id"]
        scan.encoder[m_ids] = columns["encoder"]
        scan.status[m_ids] = columns["status"]

        self._next_m_id = max(self._next_m_id, highest + 1)
        self._last_m_id = max(self._last_m_id, highest)
