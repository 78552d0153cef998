"""
Shared test helpers for the scan pipeline test suite.

Provides a small sensor configuration, synthetic packet construction and
plot embedding for the HTML report.
"""

import base64
import io

import numpy as np

from lidar_frames.Config import SensorConfig
from lidar_frames.packet_format import VALID_COLUMN_STATUS

# Column capture spacing used by the synthetic packets
COLUMN_PERIOD_NS = 1_000


class SmallSensorConfig(SensorConfig):
    # 4 beams x 8 columns, 2 columns per packet -> 4 packets per revolution
    pixels_per_column = 4
    columns_per_frame = 8
    columns_per_packet = 2
    beam_altitude_angles = (3.0, 1.0, -1.0, -3.0)  # [deg]
    beam_azimuth_angles = (0.0, 0.0, 0.0, 0.0)     # [deg]
    lidar_origin_to_beam_origin_mm = 0.0
    lidar_to_sensor_transform = None               # identity
    frame_id = "test_frame"


def default_range(m_id, row):
    """Distinct, non-zero range count for every (column, row) pixel."""
    return 1000 + 100 * m_id + row


def make_packet(
    packet_format,
    first_column,
    frame_id=0,
    timestamp_ns=None,
    range_counts=None,
    status=VALID_COLUMN_STATUS,
):
    """
    Build one raw packet starting at a given column index.

    :param packet_format: PacketFormat to encode with.
    :param first_column:  measurement_id of the first column in the packet.
    :param frame_id:      Revolution counter written in every column header.
    :param timestamp_ns:  Per-column timestamps (sequence), or None for
                          ``1e9 + column * COLUMN_PERIOD_NS``.
    :param range_counts:  Array (columns_per_packet, pixels) of ranges, or
                          None for default_range().
    :param status:        Column status word (scalar or per column).
    :return: bytes of exactly packet_format.lidar_packet_size.
    """
    columns = packet_format.empty_columns()
    n = packet_format.columns_per_packet
    h = packet_format.pixels_per_column

    m_ids = first_column + np.arange(n)
    rows = np.arange(h)

    columns["measurement_id"] = m_ids
    columns["frame_id"] = frame_id
    columns["encoder"] = m_ids * 88
    columns["status"] = status
    if timestamp_ns is None:
        columns["timestamp"] = 1_000_000_000 + m_ids * COLUMN_PERIOD_NS
    else:
        columns["timestamp"] = np.asarray(timestamp_ns, dtype=np.uint64)

    pixels = columns["pixels"]
    if range_counts is None:
        range_counts = default_range(m_ids[:, np.newaxis], rows[np.newaxis, :])
    pixels["range"] = range_counts
    pixels["signal"] = 10 + m_ids[:, np.newaxis]
    pixels["reflectivity"] = rows[np.newaxis, :]
    pixels["near_ir"] = 5
    return columns.tobytes()


def revolution_packets(packet_format, columns_per_frame, frame_id=0, **kwargs):
    """Packets covering columns 0..columns_per_frame-1 of one revolution, in order."""
    step = packet_format.columns_per_packet
    return [
        make_packet(packet_format, first, frame_id=frame_id, **kwargs)
        for first in range(0, columns_per_frame, step)
    ]


def attach_plot_to_html_report(request, fig, name):
    """
    Embed a matplotlib figure into the pytest HTML report as an inline PNG.

    Does nothing when pytest-html is not loaded, so tests still pass
    without it.

    :param request: the pytest ``request`` fixture
    :param fig:     a ``matplotlib.figure.Figure`` to embed
    :param name:    a short label shown beside the image in the report
    """
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=160)

    html_plugin = request.config.pluginmanager.getplugin("html")
    if html_plugin is not None and hasattr(html_plugin, "extras"):
        png_b64 = base64.b64encode(buf.getvalue()).decode("ascii")
        extra = getattr(request.node, "extra", [])
        extra.append(html_plugin.extras.png(png_b64, name=name))
        request.node.extra = extra
