"""
Persisted altimeter preferences.

Small key-value JSON file holding the ReferenceModel state. Loaded once
at startup and rewritten on every change through the model's change
listener.
"""

import json
import logging
import math
import os
import tempfile
from pathlib import Path
from typing import Optional

from altimeter.altimetry.reference import QNH_MAX_HPA, ReferenceModel
from altimeter.config import config

logger = logging.getLogger(__name__)

PREFERENCE_KEYS = (
    'qnh_hpa',
    'zero_altitude_offset_m',
    'start_point_pressure_hpa',
    'max_altitude_qne_m',
)


def _optional_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class PreferenceStore:
    """JSON-file backed storage for the reference values."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else config.storage.preferences_path

    def load(self) -> ReferenceModel:
        """
        Build a ReferenceModel from the saved file.

        Missing or unreadable files yield defaults. Individual values that
        fail validation fall back to their defaults as well.
        """
        model = ReferenceModel(qnh_hpa=config.altimetry.default_qnh_hpa)
        if not self.path.exists():
            return model

        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning(f'Could not read preferences from {self.path}: {e}')
            return model

        if not isinstance(data, dict):
            logger.warning(f'Ignoring malformed preferences in {self.path}')
            return model

        qnh = _optional_float(data.get('qnh_hpa'))
        if qnh is not None and 0 < qnh < QNH_MAX_HPA:
            model.qnh_hpa = qnh

        offset = _optional_float(data.get('zero_altitude_offset_m'))
        start_pressure = _optional_float(data.get('start_point_pressure_hpa'))
        if offset is not None:
            model.zero_altitude_offset_m = offset
            model.start_point_pressure_hpa = start_pressure if start_pressure and start_pressure > 0 else None

        ceiling = _optional_float(data.get('max_altitude_qne_m'))
        model.max_altitude_qne_m = ceiling if ceiling is not None and ceiling > 0 else None

        logger.info(f'Loaded preferences: {model!r}')
        return model

    def save(self, model: ReferenceModel) -> None:
        """Write the model atomically (temp file + rename)."""
        payload = {key: getattr(model, key) for key in PREFERENCE_KEYS}
        directory = self.path.parent if str(self.path.parent) else Path('.')
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(prefix='.prefs-', suffix='.json', dir=directory)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def attach(self, model: ReferenceModel) -> None:
        """Write the model through to disk on every change."""
        def _write_through(changed: ReferenceModel) -> None:
            try:
                self.save(changed)
            except OSError as e:
                logger.error(f'Failed to save preferences to {self.path}: {e}')

        model.set_change_listener(_write_through)
