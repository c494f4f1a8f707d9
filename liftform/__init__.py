"""Weight-lifting form classification over sensor location subsets."""

__version__ = "0.1.0"
