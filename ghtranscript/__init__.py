"""
ghtranscript - render a GitHub issue or pull request as one chronological document.

Usage: `from ghtranscript.services.transcript import render_document`
"""

__version__ = "0.1.0"
