from __future__ import annotations

from typing import TypeAlias

import numpy as np
import numpy.typing as npt

IntArray: TypeAlias = npt.NDArray[np.int64]
FloatArray: TypeAlias = npt.NDArray[np.float64]
BoolArray: TypeAlias = npt.NDArray[np.bool_]

Variation: TypeAlias = IntArray
Marginals: TypeAlias = list[FloatArray]

INT_DTYPE = np.int64
FLOAT_DTYPE = np.float64
