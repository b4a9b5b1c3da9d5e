import json
import logging
import os

from ..config import SETTINGS_DIRECTORY, SETTINGS_EXTENSION, ConfigError, PipelineConfig

log = logging.getLogger(__name__)


class SettingsManager:
    def __init__(self, settings_dir=SETTINGS_DIRECTORY):
        self.settings_dir = settings_dir
        os.makedirs(self.settings_dir, exist_ok=True)

    def _path(self, filename):
        if not filename.endswith(SETTINGS_EXTENSION):
            filename += SETTINGS_EXTENSION
        return os.path.join(self.settings_dir, os.path.basename(filename))

    def save_settings(self, filename, config, calibration=None):
        """Save pipeline settings and, if given, the calibration to a JSON file"""
        settings = {'pipeline': config.to_dict()}
        if calibration is not None:
            settings['calibration'] = calibration.to_dict()

        filepath = self._path(filename)
        with open(filepath, 'w') as f:
            json.dump(settings, f, indent=4)
        log.info("Settings saved to %s", filepath)
        return filepath

    def load_settings(self, filename):
        """
        Load settings from a JSON file.

        Returns (PipelineConfig, calibration dict or None). Raises ConfigError
        when the file content is not valid settings.
        """
        filepath = self._path(filename)
        with open(filepath, 'r') as f:
            try:
                settings = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"{filepath} is not valid JSON: {e}") from e

        if not isinstance(settings, dict):
            raise ConfigError(f"{filepath} does not contain a settings object")

        config = PipelineConfig.from_dict(settings.get('pipeline', {}))

        calibration = settings.get('calibration')
        if calibration is not None:
            if not isinstance(calibration, dict) or 'cm_per_pixel' not in calibration:
                raise ConfigError(f"{filepath} has a malformed calibration entry")
            try:
                cm_per_pixel = float(calibration['cm_per_pixel'])
            except (TypeError, ValueError) as e:
                raise ConfigError(f"{filepath} has a non-numeric cm_per_pixel") from e
            if not cm_per_pixel > 0:
                raise ConfigError(f"{filepath} has a non-positive cm_per_pixel {cm_per_pixel}")
            calibration = {
                'cm_per_pixel': cm_per_pixel,
                'calibrated': bool(calibration.get('calibrated', False)),
            }

        log.info("Settings loaded from %s", filepath)
        return config, calibration

    def delete_settings(self, filename):
        filepath = self._path(filename)
        os.remove(filepath)
        log.info("Deleted settings %s", filepath)

    def get_saved_settings(self):
        """Get list of saved settings files"""
        return sorted(f for f in os.listdir(self.settings_dir) if f.endswith(SETTINGS_EXTENSION))
