"""TensorFlow Lite score model used to rate every cell for the side to move."""

from __future__ import annotations

import logging
import threading
from typing import Any, List, Optional

import numpy as np

from .game import EMPTY, Board, Player, empty_cells

logger = logging.getLogger(__name__)

# Below this spread all empty cells are drawn with the same neutral shade.
MIN_SCORE_RANGE = 0.001
NEUTRAL_SHADE = 0.5


def encode_board(board: Board, player: Player) -> np.ndarray:
    """Encode from ``player``'s point of view: own mark 1, opponent -1, empty 0."""
    encoded = np.zeros((3, 3), dtype=np.float32)
    for row in range(3):
        for col in range(3):
            value = board[row][col]
            if value == EMPTY:
                continue
            encoded[row, col] = 1.0 if value == player else -1.0
    return encoded


def _load_interpreter(model_path: str) -> Any:
    try:
        # Prefer tflite_runtime - much lighter than full TensorFlow
        import tflite_runtime.interpreter as tflite
    except ImportError:
        try:
            import tensorflow.lite as tflite
        except ImportError:
            logger.warning(
                "Neither tflite_runtime nor tensorflow is installed; "
                "AI moves will fall back to random picks"
            )
            return None

    try:
        interpreter = tflite.Interpreter(model_path=model_path)
        interpreter.allocate_tensors()
    except Exception:
        logger.exception("Could not load score model from %s", model_path)
        return None
    return interpreter


class ScoreModel:
    """Thin wrapper around a TFLite interpreter producing a 3x3 score matrix.

    A model that failed to load is still a valid object: ``available`` is
    False and ``predict`` returns None, so callers degrade to random play.
    One interpreter serves every game, so inference runs under a lock.
    """

    def __init__(self, model_path: str, interpreter: Any = None):
        self.model_path = model_path
        self._lock = threading.Lock()
        self._interpreter = interpreter
        if self._interpreter is None:
            self._interpreter = _load_interpreter(model_path)
        if self._interpreter is not None:
            self._input = self._interpreter.get_input_details()[0]
            self._output = self._interpreter.get_output_details()[0]
            logger.info(
                "Score model ready (input shape %s)", list(self._input["shape"])
            )

    @property
    def available(self) -> bool:
        return self._interpreter is not None

    def predict(self, board: Board, player: Player) -> Optional[List[List[float]]]:
        with self._lock:
            if self._interpreter is None:
                return None
            try:
                # The model may or may not carry a batch dimension; both hold 9 values.
                tensor = encode_board(board, player).reshape(self._input["shape"])
                tensor = tensor.astype(self._input.get("dtype", np.float32))
                self._interpreter.set_tensor(self._input["index"], tensor)
                self._interpreter.invoke()
                output = self._interpreter.get_tensor(self._output["index"])
                scores = np.asarray(output, dtype=np.float64).reshape(3, 3)
            except Exception:
                logger.exception("Score model inference failed")
                return None
        return scores.tolist()

    def close(self) -> None:
        # The TFLite interpreter has no explicit close; dropping it frees it.
        with self._lock:
            self._interpreter = None


def shade_scores(
    board: Board, scores: Optional[List[List[float]]]
) -> List[List[float]]:
    """Normalize scores over empty cells to 0..1 for cell shading."""
    empties = empty_cells(board)
    shading = [[0.0] * 3 for _ in range(3)]
    if not empties:
        return shading

    values = [scores[r][c] for r, c in empties] if scores is not None else []
    low = min(values) if values else 0.0
    spread = (max(values) - low) if values else 0.0
    for row, col in empties:
        if spread > MIN_SCORE_RANGE:
            shading[row][col] = (scores[row][col] - low) / spread  # type: ignore[index]
        else:
            shading[row][col] = NEUTRAL_SHADE
    return shading
