"""
Website health scanner - probes, scoring and recommendations
"""

__version__ = "1.0.0"
__author__ = "SiteHealth Team"
