"""
envinject: replace environment variable placeholders in prebuilt static
assets at container start.
"""

__version__ = '0.1.0'
