# PATH: scanner/__init__.py
"""
Scanner package for DEXSCAN.

Exports:
- CrossVenueScanner, ScanSettings
- find_spreads, Spread
- find_triangles, Triangle
- ScanReport, build_scan_report, save_scan_report, print_scan_report, summarize
"""

from scanner.cross_venue import CrossVenueScanner, ScanSettings, bounded
from scanner.report import (
    ScanReport,
    build_scan_report,
    print_scan_report,
    save_scan_report,
    summarize,
)
from scanner.spread import Spread, VenuePrice, find_spreads
from scanner.triangles import Hop, Triangle, find_triangles

__all__ = [
    "CrossVenueScanner",
    "ScanSettings",
    "bounded",
    "Spread",
    "VenuePrice",
    "find_spreads",
    "Hop",
    "Triangle",
    "find_triangles",
    "ScanReport",
    "build_scan_report",
    "print_scan_report",
    "save_scan_report",
    "summarize",
]
