"""Core sampling engine: numeric primitives, fractal kinds and drivers."""
