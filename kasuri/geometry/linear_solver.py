"""
Dense linear system solver.

Gaussian elimination with partial pivoting on an augmented matrix.
"""

import logging
from typing import Optional, Union

import numpy as np

logger = logging.getLogger(__name__)

PIVOT_EPSILON = 1e-10


def solve_linear_system(
    augmented: Union[np.ndarray, list], epsilon: float = PIVOT_EPSILON
) -> Optional[np.ndarray]:
    """
    Solve a square linear system given as an augmented matrix.

    For each pivot column the row with the largest-magnitude entry among the
    remaining rows is swapped in. A pivot smaller than ``epsilon`` marks the
    system as singular.

    Args:
        augmented: Matrix of shape (n, n + 1): coefficients followed by the
                   right-hand side column. The input is not modified.
        epsilon: Minimum acceptable pivot magnitude.

    Returns:
        Solution vector of shape (n,), or None if the system is singular.

    Raises:
        ValueError: If the matrix is not of shape (n, n + 1).

    Example:
        >>> solve_linear_system([[2, 0, 4], [0, 4, 2]])
        array([2. , 0.5])
    """
    m = np.array(augmented, dtype=np.float64)

    if m.ndim != 2 or m.shape[1] != m.shape[0] + 1:
        raise ValueError(
            f"Expected augmented matrix of shape (n, n + 1), got {m.shape}"
        )

    n = m.shape[0]

    # Forward elimination
    for i in range(n):
        pivot = i + int(np.argmax(np.abs(m[i:, i])))
        if pivot != i:
            m[[i, pivot]] = m[[pivot, i]]

        if abs(m[i, i]) < epsilon:
            logger.debug(f"Singular system: pivot {m[i, i]:.3e} in column {i}")
            return None

        factors = m[i + 1 :, i] / m[i, i]
        m[i + 1 :, i:] -= np.outer(factors, m[i, i:])

    # Back substitution
    x = np.zeros(n, dtype=np.float64)
    for i in range(n - 1, -1, -1):
        s = np.dot(m[i, i + 1 : n], x[i + 1 :])
        x[i] = (m[i, n] - s) / m[i, i]

    return x
