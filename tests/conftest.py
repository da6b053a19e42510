"""Shared fixtures for NeuroXO tests."""

from __future__ import annotations

import time

import numpy as np
import pytest

# Center first, then corners, then edges.
POSITION_WEIGHTS = np.array(
    [[0.5, 0.1, 0.5], [0.1, 0.9, 0.1], [0.5, 0.1, 0.5]], dtype=np.float32
)


class FakeInterpreter:
    """Stand-in for a TFLite interpreter that scores by board position."""

    def __init__(
        self, input_shape=(1, 3, 3), output_shape=(3, 3), fail=False, delay=0.0
    ):
        self.input_shape = np.array(input_shape)
        self.output_shape = output_shape
        self.fail = fail
        self.delay = delay
        self.last_input = None
        self._output = None

    def get_input_details(self):
        return [{"index": 0, "shape": self.input_shape, "dtype": np.float32}]

    def get_output_details(self):
        return [{"index": 1, "shape": np.array(self.output_shape), "dtype": np.float32}]

    def set_tensor(self, index, value):
        assert index == 0
        self.last_input = value

    def invoke(self):
        if self.fail:
            raise RuntimeError("inference exploded")
        if self.delay:
            time.sleep(self.delay)
        board = self.last_input.reshape(3, 3)
        # Occupied cells are pushed well below any empty one.
        self._output = (POSITION_WEIGHTS - 10.0 * np.abs(board)).reshape(
            self.output_shape
        )

    def get_tensor(self, index):
        assert index == 1
        return self._output


@pytest.fixture
def fake_interpreter():
    return FakeInterpreter()
