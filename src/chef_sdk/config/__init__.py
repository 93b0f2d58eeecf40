"""
Configuration management for the Chef API Python SDK

This module reads knife.rb / client.rb files into a ``KnifeConfig``.
"""

from .knife_config import (
    KnifeConfig,
    parse_config,
    find_config_file,
    parse_server_url,
    filter_quotes,
    split_whitespace,
)

__all__ = [
    'KnifeConfig',
    'parse_config',
    'find_config_file',
    'parse_server_url',
    'filter_quotes',
    'split_whitespace',
]
