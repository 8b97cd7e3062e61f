"""Core weave primitives for Weavinator.

Modules:
- params: WeaveConfig, patterns enum, clamping and suggested defaults
- patterns: per-pattern shift factors
- scatter: seeded tile hash and jump direction
- weave: tile planning, seam-aware compositing, WeaveEngine
- interpolate: per-frame easing of the current config toward the target
- animator: redraw driver tying interpolation and rendering together
"""
