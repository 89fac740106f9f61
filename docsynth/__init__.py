"""
Document Image Generator

Composites scanned document images (cash cards, driver's licenses,
insurance cards, ...) onto background textures and writes a
deterministically split train/test corpus for document detection models.
"""

__version__ = "1.0.0"
