"""No-Entry Zone Challan System.

This package samples a traffic camera, detects vehicles entering a
restricted zone, reads their number plates, estimates their size to
classify them and issues e-challans (traffic fines) that can later be paid.
See ``run_pipeline.py`` for the command-line entry point.
"""

__all__ = []
