"""
HTTP surface for the driver dispatch service.
"""
