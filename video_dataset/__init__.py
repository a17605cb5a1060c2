"""
Video Dataset Capture

Turns videos into labeled image datasets for object-detector training:
samples one frame per second, optionally tracks a template object across
the frames, and stores each frame with a JSON annotation sidecar. Captured
datasets can be exported into one archive or relabeled in bulk.
"""

__version__ = "1.0.0"
