"""Weavinator: toroidal tile weaving of images, animated frame by frame."""

__version__ = "0.1.0"
