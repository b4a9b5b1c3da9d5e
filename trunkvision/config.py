"""Configuration settings for the TrunkVision application"""

from dataclasses import dataclass, field

# Color scheme
COLORS = {
    'main': "#81d2c8",      # Main background
    'secondary': "#abe3d6",  # Secondary elements
}

# OpenCV hue runs 0-180, saturation and value 0-255
HUE_MAX = 180
CHANNEL_MAX = 255

# Wood-brown HSV bands as (h_low, h_high, s_low, s_high, v_low, v_high).
# Brown sits on both sides of the hue origin, hence two bands.
HSV_PRESETS = {
    'two_band': (
        (0, 20, 30, 200, 20, 180),
        (160, 180, 30, 200, 20, 180),
    ),
    'single_band': (
        (0, 20, 30, 200, 20, 180),
    ),
}
DEFAULT_HSV_PRESET = 'two_band'

# Default pipeline settings
DEFAULT_PIPELINE_SETTINGS = {
    'open_kernel_size': 5,
    'close_kernel_size': 9,
    'min_contour_area': 1000,         # pixels, tuned for 640x480 frames
    'lumber_piece_volume_cm3': 2000.0,
    'wood_density_g_per_cm3': 0.6,
}

# Placeholder scale until a calibration succeeds
DEFAULT_CM_PER_PIXEL = 0.1
DEFAULT_REFERENCE_LENGTH_CM = 30.0

# Default camera settings
DEFAULT_CAMERA_SETTINGS = {
    'camera_index': 0,
    'resolution': "640x480",
}

# File paths
SETTINGS_DIRECTORY = "settings"
SETTINGS_EXTENSION = ".json"

# Preview settings
PREVIEW_BUFFER_SIZE = 2
PREVIEW_UPDATE_INTERVAL = 0.03  # seconds
PREVIEW_ERROR_DELAY = 0.1  # seconds
MEASURE_INTERVAL_MS = 500
PREVIEW_MAX_WIDTH = 800

# GUI settings
GUI_SETTINGS = {
    'button_padding': 10,
    'font_family': 'Arial',
    'font_size_normal': 10,
    'font_size_large': 12
}


class ConfigError(ValueError):
    """Raised when pipeline settings are malformed"""


def _check_hsv_range(hsv_range):
    if len(hsv_range) != 6:
        raise ConfigError(f"HSV range needs 6 bounds, got {len(hsv_range)}: {hsv_range!r}")
    h_low, h_high, s_low, s_high, v_low, v_high = hsv_range
    for low, high, top, name in ((h_low, h_high, HUE_MAX, 'hue'),
                                 (s_low, s_high, CHANNEL_MAX, 'saturation'),
                                 (v_low, v_high, CHANNEL_MAX, 'value')):
        for bound in (low, high):
            if isinstance(bound, bool) or not isinstance(bound, int):
                raise ConfigError(f"{name} bounds must be integers, got {bound!r}")
        if not (0 <= low <= high <= top):
            raise ConfigError(f"Invalid {name} bounds {low}..{high} (allowed 0..{top})")
    return tuple(int(v) for v in hsv_range)


def _check_number(value, name, allow_none=False):
    if value is None and allow_none:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{name} must be a number, got {value!r}")


def _check_kernel(size, name):
    if isinstance(size, bool) or not isinstance(size, int) or size < 3 or size % 2 == 0:
        raise ConfigError(f"{name} must be an odd integer >= 3, got {size!r}")


@dataclass(frozen=True)
class PipelineConfig:
    """Tunable settings for one measurement run.

    The thresholds depend on lighting and frame resolution, so none of them
    is treated as canonical.
    """

    hsv_ranges: tuple = field(default_factory=lambda: HSV_PRESETS[DEFAULT_HSV_PRESET])
    open_kernel_size: int = DEFAULT_PIPELINE_SETTINGS['open_kernel_size']
    close_kernel_size: int = DEFAULT_PIPELINE_SETTINGS['close_kernel_size']
    min_contour_area: float = DEFAULT_PIPELINE_SETTINGS['min_contour_area']
    lumber_piece_volume_cm3: float = DEFAULT_PIPELINE_SETTINGS['lumber_piece_volume_cm3']
    wood_density_g_per_cm3: float = DEFAULT_PIPELINE_SETTINGS['wood_density_g_per_cm3']

    def __post_init__(self):
        try:
            ranges = tuple(_check_hsv_range(tuple(r)) for r in self.hsv_ranges)
        except TypeError as e:
            raise ConfigError(f"Malformed HSV range list: {self.hsv_ranges!r}") from e
        if not ranges:
            raise ConfigError("At least one HSV range is required")
        object.__setattr__(self, 'hsv_ranges', ranges)

        _check_kernel(self.open_kernel_size, 'open_kernel_size')
        _check_kernel(self.close_kernel_size, 'close_kernel_size')
        _check_number(self.min_contour_area, 'min_contour_area')
        _check_number(self.lumber_piece_volume_cm3, 'lumber_piece_volume_cm3')
        _check_number(self.wood_density_g_per_cm3, 'wood_density_g_per_cm3', allow_none=True)
        if self.min_contour_area < 0:
            raise ConfigError(f"min_contour_area must be >= 0, got {self.min_contour_area}")
        if self.lumber_piece_volume_cm3 <= 0:
            raise ConfigError(
                f"lumber_piece_volume_cm3 must be > 0, got {self.lumber_piece_volume_cm3}")
        if self.wood_density_g_per_cm3 is not None and self.wood_density_g_per_cm3 <= 0:
            raise ConfigError(
                f"wood_density_g_per_cm3 must be > 0 or None, got {self.wood_density_g_per_cm3}")

    @classmethod
    def from_preset(cls, preset, **overrides):
        """Build a config from a named HSV preset"""
        if preset not in HSV_PRESETS:
            raise ConfigError(f"Unknown HSV preset {preset!r}, expected one of {sorted(HSV_PRESETS)}")
        return cls(hsv_ranges=HSV_PRESETS[preset], **overrides)

    @classmethod
    def from_dict(cls, settings):
        """Build a config from a settings dictionary, ignoring unknown keys"""
        if not isinstance(settings, dict):
            raise ConfigError(f"Pipeline settings must be a mapping, got {settings!r}")
        known = {k: settings[k] for k in cls.__dataclass_fields__ if k in settings}
        if 'hsv_ranges' in known:
            try:
                known['hsv_ranges'] = tuple(tuple(r) for r in known['hsv_ranges'])
            except TypeError as e:
                raise ConfigError(f"Malformed HSV range list: {known['hsv_ranges']!r}") from e
        return cls(**known)

    def to_dict(self):
        return {
            'hsv_ranges': [list(r) for r in self.hsv_ranges],
            'open_kernel_size': self.open_kernel_size,
            'close_kernel_size': self.close_kernel_size,
            'min_contour_area': self.min_contour_area,
            'lumber_piece_volume_cm3': self.lumber_piece_volume_cm3,
            'wood_density_g_per_cm3': self.wood_density_g_per_cm3,
        }


def parse_resolution(resolution):
    """Turn a "WIDTHxHEIGHT" string into an (int, int) tuple"""
    try:
        width, height = (int(v) for v in resolution.lower().split('x'))
    except ValueError as e:
        raise ConfigError(f"Resolution must look like 640x480, got {resolution!r}") from e
    if width <= 0 or height <= 0:
        raise ConfigError(f"Resolution must be positive, got {resolution!r}")
    return width, height
