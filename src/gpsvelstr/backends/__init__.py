"""Renderer and rasterizer backends."""
