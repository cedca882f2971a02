"""
Certificates of authenticity for shop orders: one PDF page per purchased unit.
"""
