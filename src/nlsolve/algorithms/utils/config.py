"""Global switches shared by the numba kernels of :mod:`nlsolve.algorithms`."""

FASTMATH = False  # Global flag for Numba's fastmath option

NUMPY_DTYPE_REAL = "float64"
