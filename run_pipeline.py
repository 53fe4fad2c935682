"""Entry point for running the no-entry zone challan pipeline.

Opens the configured camera (or video file), samples it at the configured
interval, issues a challan for every vehicle whose plate is read and prints
the challan statistics on exit. With ``--once`` a single frame is processed.

Usage
-----
```bash
python run_pipeline.py --config configs/default.yaml
python run_pipeline.py --config configs/default.yaml --source clip.mp4 --location "School Zone"
```
"""

from __future__ import annotations

import argparse
import logging
import time
from typing import Optional, Sequence

from camera_adapters import LocalFileCamera, create_camera
from capture import CycleOutcome, EnforcementController, PipelineSettings, load_config
from challan.models import Statistics
from monitoring import setup_logging

logger = logging.getLogger("run_pipeline")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the no-entry zone challan pipeline.")
    parser.add_argument("--config", type=str, required=True, help="Path to configuration file.")
    parser.add_argument("--location", type=str, default=None, help="Monitored location (defaults to the first).")
    parser.add_argument("--source", type=str, default=None, help="Override the camera source.")
    parser.add_argument("--once", action="store_true", help="Process a single frame and exit.")
    parser.add_argument("--metrics-port", type=int, default=None, help="Serve Prometheus metrics on this port.")
    return parser


def format_statistics(stats: Statistics) -> str:
    lines = [
        f"Total challans:   {stats.total_challans}",
        f"Pending challans: {stats.pending_challans}",
        f"Paid challans:    {stats.paid_challans}",
        f"Total revenue:    {stats.total_revenue}",
        "By violation:",
    ]
    lines += [f"  {violation.value}: {count}" for violation, count in stats.violation_stats.items()]
    lines.append("By vehicle type:")
    lines += [f"  {vtype.value}: {count}" for vtype, count in stats.vehicle_type_stats.items()]
    return "\n".join(lines)


def _print_outcome(outcome: CycleOutcome) -> None:
    print(f"[{outcome.status.value}] {outcome.message}")
    for result in outcome.results:
        print(
            f"  {result.challan_id}: {result.vehicle_number} {result.vehicle_type.value} "
            f"({result.dimensions.width:.2f} x {result.dimensions.height:.2f} x {result.dimensions.length:.2f}) "
            f"confidence {result.confidence:.2f}"
        )


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    if args.source is not None:
        config.setdefault("camera", {})["source"] = args.source
    if args.metrics_port is not None:
        config.setdefault("monitoring", {}).update({"enable_metrics": True, "metrics_port": args.metrics_port})
    settings = PipelineSettings.from_dict(config)
    setup_logging(settings.log_level, settings.log_file)

    cameras = []

    def camera_factory():
        camera = create_camera(settings.source, sample_interval=settings.sample_interval)
        cameras.append(camera)
        return camera

    controller = EnforcementController.from_settings(settings, camera_factory=camera_factory, on_cycle=_print_outcome)
    try:
        session = controller.start_session(args.location)
        if args.once:
            controller.capture_once()
        else:
            logger.info("Press Ctrl+C to stop")
            while session.active:
                camera = cameras[-1]
                if isinstance(camera, LocalFileCamera) and camera.exhausted:
                    break
                time.sleep(0.2)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        controller.stop_session()
        print(format_statistics(controller.current_statistics()))
        controller.close()


if __name__ == "__main__":
    main()
