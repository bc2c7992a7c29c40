"""
pyKagi is a small toolbox for PDF files. It can password-protect existing
documents using the standard security handler (revision 2), and shrink
documents by recompressing the raster images they contain.

See :mod:`pykagi.operations` for the file-based entry points.
"""

from .version import __version__, __version_info__

__all__ = ['__version__', '__version_info__']
