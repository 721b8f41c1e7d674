"""
Command-line interface for blockfetch.
"""
