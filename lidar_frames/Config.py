import numpy as np


class SensorConfig:
    # Frame shape
    pixels_per_column = 64  # beams per column (image height)
    columns_per_frame = 1024  # columns per revolution (image width)
    columns_per_packet = 16  # columns carried by one lidar packet

    # Range scaling
    range_unit = 0.001  # [m] per raw range count (packets carry millimetres)

    # Beam intrinsics
    # Per-beam elevation above the horizontal plane, top beam first
    beam_altitude_angles = tuple(np.linspace(16.611, -16.611, 64).tolist())  # [deg]
    # Per-beam azimuth offset from the column encoder angle
    beam_azimuth_angles = (4.23, 1.41, -1.4, -4.22) * 16  # [deg]
    lidar_origin_to_beam_origin_mm = 15.806  # [mm], beam origin radius

    # Extrinsics: row-major 4x4 lidar -> sensor frame transform (translation in mm)
    lidar_to_sensor_transform = (
        -1.0, 0.0, 0.0, 0.0,
        0.0, -1.0, 0.0, 0.0,
        0.0, 0.0, 1.0, 36.18,
        0.0, 0.0, 0.0, 1.0,
    )

    # Output labelling
    frame_id = "laser_sensor_frame"  # coordinate frame stamped on every cloud
