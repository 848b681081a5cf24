"""
imprep
======

On-the-fly image preprocessing for supervised-learning training pipelines.
"""

from . import transforms
from . import presets

__all__ = ['transforms', 'presets']
