"""
Math Utilities Module

This module provides the small validation helpers shared by the sensor
description, the geometry lookup table and the packet codec. It covers
coercion of configuration values into positive integers, fixed-length
per-beam angle tables and homogeneous 4x4 transforms.

All helpers raise ValueError on bad input so that a misconfigured
pipeline fails while it is being built, never while packets stream in.
"""

import numpy as np

# Small numerical tolerance used when checking that a homogeneous transform
# has the expected [0, 0, 0, 1] bottom row.
eps = 1e-12  # [dimensionless]


def _as_positive_int(value, name):
    """
    Validate and convert an input into a strictly positive Python int.

    :param value: Number-like input (int, numpy integer, integral float).
    :param name:  Human-readable parameter name, shown in error messages.

    :return: int greater than zero.
    :raises ValueError: If the value is not integral or not positive.
    """
    number = float(value)

    # Reject fractional values such as 1023.5 columns
    if not number.is_integer():
        raise ValueError(f"{name} must be an integer.")

    if number <= 0:
        raise ValueError(f"{name} must be > 0.")
    return int(number)


def _as_angle_table(value, name, size):
    """
    Validate and convert an input into a flat per-beam angle table.

    Takes any array-like input and converts it to a 1D float64 array. The
    table must hold exactly one entry per beam (pixel row).

    :param value: Array-like input of angles [deg].
    :param name:  Human-readable parameter name, shown in error messages.
    :param size:  Required number of entries.

    :return: numpy array of shape (size,) with dtype float64.
    :raises ValueError: If the entry count is wrong or any entry is not finite.
    """
    # Convert the input to a numpy float array and flatten it to 1D
    table = np.asarray(value, dtype=float).reshape(-1)

    if table.size != size:
        raise ValueError(f"{name} must contain {size} entries, got {table.size}.")
    if not np.all(np.isfinite(table)):
        raise ValueError(f"{name} must contain only finite values.")
    return table


def _as_transform_matrix(value, name):
    """
    Validate and convert an input into a 4x4 homogeneous transform.

    Accepts either 16 values in row-major order (the layout used by vendor
    metadata files) or anything already shaped 4x4. Only the shape and the
    homogeneous bottom row are validated; orthogonality of the rotation
    block is not checked.

    :param value: Array-like input with 16 elements.
    :param name:  Human-readable parameter name, shown in error messages.

    :return: numpy array of shape (4, 4) with dtype float64.
    :raises ValueError: If the input cannot be read as a homogeneous 4x4 matrix.
    """
    matrix = np.asarray(value, dtype=float)

    # Flat 16-element inputs are interpreted row by row
    if matrix.size != 16:
        raise ValueError(f"{name} must be a 4x4 homogeneous transform.")
    matrix = matrix.reshape(4, 4)

    # The last row of a rigid transform is always [0, 0, 0, 1]
    if not np.allclose(matrix[3], [0.0, 0.0, 0.0, 1.0], rtol=0.0, atol=eps):
        raise ValueError(f"{name} must have [0, 0, 0, 1] as its last row.")
    return matrix
