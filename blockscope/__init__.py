"""blockscope — live Bitcoin block explorer dashboard."""

__version__ = "0.1.0"
