"""
Main Entry Point for the Drowsiness Tracker

Captures a reference frame, compares a fixed number of following frames
against it and reports whether the subject is drowsy.
"""

import cv2
import argparse
import copy
import yaml
import logging
import time
import sys
from typing import Dict, Any, Optional, Tuple, Union, List

from .integration.drowsiness_analyzer import DrowsinessAnalyzer, DrowsinessVerdict
from .modules.utils.camera_utils import CameraManager, list_cameras
from .real_time.gui_interface import GUIInterface
from .utils.data_analyzer import SessionDataAnalyzer


def setup_logging(log_level: str = 'INFO', log_file: Optional[str] = 'drowsiness_tracker.log'):
    """Setup logging configuration."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def get_default_config() -> dict:
    """Get default configuration for the system."""
    return {
        'camera': {
            'device_id': 0,
            'width': 1280,
            'height': 720,
            'fps': 30,
            'warmup_frames': 10
        },
        'segmentation': {
            'diff_mode': 'absolute',
            'intensity_threshold': 8,
            'min_blob_area': 50,
            'major_axis_threshold': 700.0,
            'connectivity': 8,
            'overlay_color': [0, 0, 255]
        },
        'analysis': {
            'frames': 100
        },
        'display': {
            'show_visualization': True,
            'show_status': True,
            'window_name': 'Camera',
            'verdict_wait_ms': 3000
        },
        'logging': {
            'level': 'INFO',
            'log_file': 'drowsiness_tracker.log'
        },
        'output': {
            'session_path': None
        }
    }


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(merged.get(key), dict):
            if isinstance(value, dict):
                merged[key] = merge_config(merged[key], value)
            elif value is not None:
                logging.error(f"Config section '{key}' must be a mapping, using defaults for it")
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str]) -> dict:
    """Load configuration from YAML file, falling back to defaults."""
    defaults = get_default_config()
    if not config_path:
        return defaults

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logging.warning(f"Config file {config_path} not found, using default configuration")
        return defaults
    except yaml.YAMLError as e:
        logging.error(f"Error loading config: {e}")
        return defaults

    if not isinstance(config, dict):
        logging.error(f"Config file {config_path} does not contain a mapping, using default configuration")
        return defaults

    return merge_config(defaults, config)


def run_drowsiness_check(config: dict, camera, gui: Optional[GUIInterface] = None,
                         analyzer: Optional[DrowsinessAnalyzer] = None
                         ) -> Tuple[DrowsinessVerdict, DrowsinessAnalyzer]:
    """
    Run one drowsiness check.

    Args:
        config: System configuration
        camera: Started frame source exposing snapshot() -> (frame, timestamp)
        gui: Optional display; 'q' in the window ends the check early
        analyzer: Analyzer to fill (built from config if None)

    Returns:
        Tuple of (verdict, analyzer holding the session history)
    """
    if analyzer is None:
        analyzer = DrowsinessAnalyzer.from_config(config)

    reference, reference_time = camera.snapshot()
    analyzer.set_reference(reference, reference_time)

    logging.info(f"Starting drowsiness check over {analyzer.frames} frames")

    while not analyzer.is_complete:
        try:
            frame, timestamp = camera.snapshot()
        except RuntimeError as e:
            logging.warning(f"Frame acquisition stopped after {analyzer.frames_analyzed} frames: {e}")
            break

        analysis = analyzer.analyze_frame(frame, timestamp)

        if gui is not None:
            key = gui.display_frame(analysis.highlighted, analysis)
            if key == ord('q'):
                logging.info("Quit requested by user")
                break

    verdict = analyzer.get_verdict()
    logging.info(f"Drowsiness check finished: count={analyzer.drowsy_count}, verdict={verdict.value}")

    if gui is not None:
        gui.show_cover(reference.shape)
        gui.show_verdict(verdict, config.get('display', {}).get('verdict_wait_ms', 3000))
    else:
        print(verdict.value)

    return verdict, analyzer


def run_real_time_analysis(config: dict, video_source: Union[int, str] = 0,
                           output_path: Optional[str] = None) -> Optional[DrowsinessVerdict]:
    """
    Run a drowsiness check against a webcam or video file.

    Args:
        config: System configuration
        video_source: Webcam index or video file path
        output_path: Path to save session data

    Returns:
        The verdict, or None if the source could not be opened
    """
    try:
        analyzer = DrowsinessAnalyzer.from_config(config)
    except ValueError as e:
        logging.error(f"Invalid analysis configuration: {e}")
        return None

    camera = CameraManager.from_config(config.get('camera', {}), camera_id=video_source)
    if not camera.start():
        logging.error("Error: Could not open video source")
        return None

    display_config = config.get('display', {})
    gui = None
    if display_config.get('show_visualization', True):
        gui = GUIInterface(
            window_name=display_config.get('window_name', 'Camera'),
            show_status=display_config.get('show_status', True),
            total_frames=config.get('analysis', {}).get('frames', 100)
        )

    verdict = None
    try:
        verdict, _ = run_drowsiness_check(config, camera, gui, analyzer)

    except KeyboardInterrupt:
        logging.info("Analysis interrupted by user")

    except RuntimeError as e:
        logging.error(f"Error during analysis: {e}")

    finally:
        camera.stop()
        if gui is not None:
            gui.cleanup()
        cv2.destroyAllWindows()

    if analyzer.has_reference:
        summary = analyzer.get_session_summary()
        logging.info("=== Session Summary ===")
        logging.info(f"Duration: {summary['session_duration']:.1f} seconds")
        logging.info(f"Frames analyzed: {summary['frames_analyzed']}/{summary['frames_requested']}")
        logging.info(f"Significant change frames: {summary['significant_change_frames']}")

        output_path = output_path or config.get('output', {}).get('session_path')
        if output_path:
            analyzer.export_session_data(output_path)

    return verdict


def run_report(input_path: str, output_path: Optional[str] = None) -> bool:
    """Summarize an exported session and optionally plot it."""
    data_analyzer = SessionDataAnalyzer(input_path)
    report = data_analyzer.generate_summary_report()
    if not report:
        logging.error(f"No session data in {input_path}")
        return False

    for key, value in report.items():
        print(f"{key}: {value}")

    if output_path:
        return data_analyzer.plot_session(output_path)
    return True


def positive_int(value: str) -> int:
    """argparse type accepting integers greater than zero."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Reference-frame Drowsiness Tracker')

    parser.add_argument('--config', '-c', type=str, default='configs/default_config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--mode', '-m', choices=['realtime', 'batch', 'report'], default='realtime',
                        help='Run mode')
    parser.add_argument('--input', '-i', type=str, default=None,
                        help='Webcam index, video file path, or session file for report mode')
    parser.add_argument('--output', '-o', type=str, default=None,
                        help='Output path for session data (or plot in report mode)')
    parser.add_argument('--frames', '-n', type=positive_int, default=None,
                        help='Number of frames compared against the reference')
    parser.add_argument('--diff-mode', choices=['absolute', 'saturated'], default=None,
                        help='Grayscale differencing mode')
    parser.add_argument('--no-display', action='store_true',
                        help='Run without the OpenCV window')
    parser.add_argument('--list-cameras', action='store_true',
                        help='List available camera indices and exit')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default=None, help='Logging level')

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main function with command line interface."""
    args = parse_args(argv)

    config = load_config(args.config)

    # Command line overrides
    if args.frames is not None:
        config['analysis']['frames'] = args.frames
    if args.diff_mode is not None:
        config['segmentation']['diff_mode'] = args.diff_mode
    if args.no_display:
        config['display']['show_visualization'] = False

    log_config = config.get('logging', {})
    setup_logging(args.log_level or log_config.get('level', 'INFO'), log_config.get('log_file'))

    if args.list_cameras:
        for index in list_cameras():
            print(index)
        return 0

    if args.mode == 'report':
        if not args.input:
            logging.error("Report mode requires --input pointing to a session file")
            return 2
        return 0 if run_report(args.input, args.output) else 1

    if args.input is None:
        video_source = config['camera'].get('device_id', 0)
    else:
        try:
            video_source = int(args.input)
        except ValueError:
            video_source = args.input

    if args.mode == 'batch' and isinstance(video_source, int):
        logging.error("Batch mode requires a video file path, not webcam index")
        return 2

    start_time = time.time()
    verdict = run_real_time_analysis(config, video_source, args.output)
    logging.info(f"Finished in {time.time() - start_time:.1f} seconds")

    return 0 if verdict is not None else 1


if __name__ == '__main__':
    sys.exit(main())
