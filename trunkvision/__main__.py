"""Command line entry point.

    python -m trunkvision measure trunk.jpg --cm-per-pixel 0.12
    python -m trunkvision gui --camera 0 --resolution 640x480
    python -m trunkvision cameras
"""

import argparse
import json
import logging
import sys

import cv2

from .calibration import Calibration, CalibrationError, CalibrationManager
from .config import (
    DEFAULT_CAMERA_SETTINGS,
    DEFAULT_HSV_PRESET,
    HSV_PRESETS,
    SETTINGS_DIRECTORY,
    ConfigError,
    PipelineConfig,
    parse_resolution,
)
from .pipeline import MeasurementSession
from .utils.dxf_export import export_outline_dxf

log = logging.getLogger("trunkvision")


def load_frame(path):
    """Read an image file as an RGB frame"""
    image = cv2.imread(path, cv2.IMREAD_COLOR)
    if image is None:
        raise FileNotFoundError(f"Cannot load image {path}")
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def build_session(args):
    calibration = None
    if args.settings:
        from .gui.settings_manager import SettingsManager

        config, saved = SettingsManager(args.settings_dir).load_settings(args.settings)
        if saved is not None:
            calibration = Calibration(saved['cm_per_pixel'], saved['calibrated'])
    else:
        config = PipelineConfig.from_preset(args.preset)

    if args.min_area is not None:
        config = PipelineConfig.from_dict({**config.to_dict(), 'min_contour_area': args.min_area})
    if args.cm_per_pixel is not None:
        calibration = Calibration(args.cm_per_pixel, calibrated=True)

    return MeasurementSession(config, CalibrationManager(calibration))


def cmd_measure(args):
    session = build_session(args)
    frame = load_frame(args.image)
    result = session.run_pipeline(frame)

    print(json.dumps(result.to_dict(), indent=2))
    if not result:
        return 1
    if not result.calibrated:
        log.warning("No calibration given, sizes use the placeholder %.4f cm/pixel",
                    session.calibration.cm_per_pixel)
    if args.dxf:
        export_outline_dxf(result, args.dxf)
    return 0


def cmd_cameras(args):
    from .utils.camera_utils import build_camera_index_map, get_camera_resolutions

    cameras = build_camera_index_map()
    if not cameras:
        log.error("No cameras found")
        return 1
    for index, name in cameras.items():
        resolutions = ", ".join(f"{w}x{h}" for w, h in get_camera_resolutions(index))
        print(f"{index}: {name} ({resolutions or 'no resolutions reported'})")
    return 0


def cmd_gui(args):
    from .gui.main_app import run_app

    session = build_session(args)
    run_app(args.camera, parse_resolution(args.resolution), session=session)
    return 0


def make_parser():
    parser = argparse.ArgumentParser(prog="trunkvision",
                                     description="Estimate trunk size and lumber yield from a camera frame")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--preset", choices=sorted(HSV_PRESETS), default=DEFAULT_HSV_PRESET,
                        help="wood color HSV preset")
    common.add_argument("--min-area", type=float, help="minimum trunk contour area in pixels")
    common.add_argument("--cm-per-pixel", type=float, help="known scale, skips calibration")
    common.add_argument("--settings", help="saved settings name to load")
    common.add_argument("--settings-dir", default=SETTINGS_DIRECTORY)

    sub = parser.add_subparsers(dest="command", required=True)

    measure = sub.add_parser("measure", parents=[common], help="measure the trunk in an image file")
    measure.add_argument("image")
    measure.add_argument("--dxf", help="also write the trunk outline to this DXF file")
    measure.set_defaults(func=cmd_measure)

    gui = sub.add_parser("gui", parents=[common], help="live camera preview")
    gui.add_argument("--camera", type=int, default=DEFAULT_CAMERA_SETTINGS['camera_index'])
    gui.add_argument("--resolution", default=DEFAULT_CAMERA_SETTINGS['resolution'])
    gui.set_defaults(func=cmd_gui)

    cameras = sub.add_parser("cameras", help="list cameras and the resolutions they accept")
    cameras.set_defaults(func=cmd_cameras)

    return parser


def main(argv=None):
    args = make_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(name)s] %(levelname)s: %(message)s",
    )
    try:
        return args.func(args)
    except (ConfigError, CalibrationError, FileNotFoundError) as e:
        log.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
