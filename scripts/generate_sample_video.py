"""Generate a synthetic no-entry zone clip for demos and tests.

A dark road with one box-shaped "vehicle" driving across it. The vehicle
carries a white number plate with dark text, so the full pipeline (edges,
gate, OCR, plate pattern) has something to find.

```bash
python scripts/generate_sample_video.py --out sample_data/sample_video.mp4
python run_pipeline.py --config configs/default.yaml --source sample_data/sample_video.mp4
```
"""

from __future__ import annotations

import argparse
from pathlib import Path

import cv2
import numpy as np

VEHICLE_SIZE = (220, 160)


def render_frame(idx: int, width: int = 640, height: int = 480, plate: str = "AB 12 CD 3456") -> np.ndarray:
    frame = np.full((height, width, 3), 40, dtype=np.uint8)
    vw, vh = VEHICLE_SIZE
    x = (idx * 5) % max(1, width - vw)
    y = (height - vh) // 2
    cv2.rectangle(frame, (x, y), (x + vw, y + vh), (180, 60, 30), thickness=-1)
    px1, py1 = x + 20, y + vh - 50
    cv2.rectangle(frame, (px1, py1), (px1 + vw - 40, py1 + 36), (255, 255, 255), thickness=-1)
    cv2.putText(frame, plate, (px1 + 6, py1 + 26), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 0), 2, cv2.LINE_AA)
    return frame


def generate_sample_video(
    video_path: Path,
    frame_count: int = 120,
    fps: int = 10,
    width: int = 640,
    height: int = 480,
    fourcc: str = "mp4v",
) -> Path:
    video_path = Path(video_path)
    video_path.parent.mkdir(parents=True, exist_ok=True)
    writer = cv2.VideoWriter(str(video_path), cv2.VideoWriter_fourcc(*fourcc), fps, (width, height))
    if not writer.isOpened():
        raise RuntimeError(f"Failed to open writer for {video_path}")
    try:
        for idx in range(frame_count):
            writer.write(render_frame(idx, width, height))
    finally:
        writer.release()
    return video_path


def main() -> None:
    parser = argparse.ArgumentParser(description="Write a synthetic no-entry zone clip.")
    default_out = Path(__file__).resolve().parent.parent / "sample_data" / "sample_video.mp4"
    parser.add_argument("--out", type=Path, default=default_out)
    parser.add_argument("--frames", type=int, default=120)
    args = parser.parse_args()
    path = generate_sample_video(args.out, frame_count=args.frames)
    print(f"Sample video written to {path}")


if __name__ == "__main__":
    main()
