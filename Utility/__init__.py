"""
CameraView Utility Package
==========================

Logging glyphs and pygame fonts shared by the display and the CLI.
"""

__version__ = "1.0.0"

from .Font.FontIconLibrary import FontLibrary, IconLibrary

__all__ = ['FontLibrary', 'IconLibrary']
