"""Tests for build-time numeric configuration."""

import os
import subprocess
import sys

import numpy as np
import pytest

from ganesh import config


def test_default_float_is_double():
    assert config.FLOAT is np.float64
    assert config.EPSILON == np.finfo(np.float64).eps
    assert config.DEFAULT_MAX_STEPS == 4000


def test_resolve_float():
    assert config._resolve_float("f32") is np.float32
    assert config._resolve_float(" F64 ") is np.float64
    with pytest.raises(ValueError):
        config._resolve_float("f16")


def test_as_float_array_copies_and_flattens():
    source = np.array([[1, 2], [3, 4]])
    out = config.as_float_array(source)
    assert out.dtype == config.FLOAT
    assert out.shape == (4,)
    out[0] = 10
    assert source[0, 0] == 1


def test_single_precision_from_environment():
    code = (
        "import numpy as np, ganesh; "
        "from ganesh.test_functions import Rosenbrock; "
        "s = ganesh.Minimizer(ganesh.NelderMead(), max_steps=50).minimize(Rosenbrock(2), [2.0, 2.0]); "
        "assert ganesh.FLOAT is np.float32; "
        "assert s.x.dtype == np.float32; "
        "print('ok')"
    )
    result = subprocess.run(
        [sys.executable, "-c", code],
        capture_output=True,
        text=True,
        check=False,
        timeout=60,
        env={**os.environ, "GANESH_FLOAT": "f32"},
    )
    assert result.returncode == 0, result.stderr
    assert "ok" in result.stdout
