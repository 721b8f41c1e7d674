"""
Concurrency helpers: error channels and fan-in merge.
"""

from blockfetch.concurrency.channels import (
    ErrorChannel,
    collect_errors,
    error_channel_for,
    merge_error_channels,
)

__all__ = [
    "ErrorChannel",
    "merge_error_channels",
    "error_channel_for",
    "collect_errors",
]
