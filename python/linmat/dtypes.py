"""Element types accepted by linmat matrices.

A single capability set covers every supported type: numpy provides the
addition, multiplication, comparison and identities, so kernels never
branch on the concrete type.
"""

import numbers

import numpy as np

SUPPORTED_DTYPES = tuple(
    np.dtype(t) for t in (np.int8, np.int16, np.int32, np.int64, np.float32, np.float64)
)

float32 = np.dtype(np.float32)
float64 = np.dtype(np.float64)
int32 = np.dtype(np.int32)
int64 = np.dtype(np.int64)

DEFAULT_DTYPE = float64


def numeric_dtype(dtype):
    """Normalize ``dtype`` and check that it is a supported element type.

    Parameters
    ----------
    dtype : dtype-like or None
        Anything ``numpy.dtype`` accepts. ``None`` selects float64.

    Returns
    -------
    numpy.dtype

    Raises
    ------
    TypeError
        If the type is not a signed integer or a 32/64-bit float.
    """
    if dtype is None:
        return DEFAULT_DTYPE
    try:
        dt = np.dtype(dtype)
    except TypeError as exc:
        raise TypeError(f"not a numeric dtype: {dtype!r}") from exc
    if dt not in SUPPORTED_DTYPES:
        raise TypeError(
            f"unsupported element type {dt}; expected one of "
            + ", ".join(str(d) for d in SUPPORTED_DTYPES)
        )
    return dt


def result_dtype(a, b):
    """Element type of a binary operation between ``a`` and ``b`` dtypes."""
    return numeric_dtype(np.result_type(numeric_dtype(a), numeric_dtype(b)))


_INTEGER_LADDER = tuple(d for d in SUPPORTED_DTYPES if np.issubdtype(d, np.integer))


def scalar_result_dtype(dtype, value):
    """Element type of an operation between a ``dtype`` matrix and a scalar.

    Python scalars follow numpy's promotion rules, so an integer matrix
    scaled by ``2.5`` becomes float64 while ``float32 * 2`` stays float32.
    An integer scalar that does not fit an integer matrix's type widens
    the result to the smallest supported integer type that holds it, so
    an int8 matrix times ``1000`` is int16.

    Raises
    ------
    OverflowError
        If an integer scalar does not fit in int64.
    """
    dtype = numeric_dtype(dtype)
    python_int = isinstance(value, numbers.Integral) and not isinstance(
        value, (bool, np.bool_, np.integer)
    )
    if not (python_int and np.issubdtype(dtype, np.integer)):
        return numeric_dtype(np.result_type(dtype, value))
    value = int(value)
    for candidate in _INTEGER_LADDER:
        if candidate.itemsize < dtype.itemsize:
            continue
        info = np.iinfo(candidate)
        if info.min <= value <= info.max:
            return candidate
    raise OverflowError(f"scalar {value} does not fit any supported integer type")


def infer_dtype(values):
    """Pick float64 for floats/empty input and int64 for integer input."""
    arr = np.asarray(values)
    if arr.size == 0:
        return DEFAULT_DTYPE
    if arr.dtype in SUPPORTED_DTYPES:
        return arr.dtype
    if np.issubdtype(arr.dtype, np.integer) or arr.dtype == np.bool_:
        return int64
    if np.issubdtype(arr.dtype, np.floating):
        return DEFAULT_DTYPE
    raise TypeError(f"cannot infer a numeric dtype from {arr.dtype}")


def is_floating(dtype) -> bool:
    return np.issubdtype(numeric_dtype(dtype), np.floating)


def zero(dtype):
    """Additive identity of ``dtype`` as a numpy scalar."""
    return numeric_dtype(dtype).type(0)


def one(dtype):
    """Multiplicative identity of ``dtype`` as a numpy scalar."""
    return numeric_dtype(dtype).type(1)


def scalar(value, dtype):
    """Cast a Python or numpy number to a numpy scalar of ``dtype``."""
    return numeric_dtype(dtype).type(value)


def divide(a, b, dtype):
    """Divide in ``dtype``: true division for floats, truncation toward zero for integers.

    Callers reject zero divisors beforehand.
    """
    dtype = numeric_dtype(dtype)
    a = np.asarray(a, dtype=dtype)
    b = np.asarray(b, dtype=dtype)
    if np.issubdtype(dtype, np.floating):
        return np.divide(a, b, dtype=dtype)
    # a - fmod(a, b) is an exact multiple of b, so floor division is exact
    return np.floor_divide(a - np.fmod(a, b), b).astype(dtype, copy=False)
