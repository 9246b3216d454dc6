"""Entities, components, AABB physics, camera and scene render data for a small 2D side-scrolling engine."""

__version__ = "0.1.0"