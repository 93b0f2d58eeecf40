"""
knife.rb configuration parsing

Reads the subset of knife.rb / client.rb settings that a Chef API client
needs. knife.rb is Ruby, so this is a line-oriented reader for the simple
``key value`` form that ``knife configure`` writes, not a Ruby interpreter.
"""

import os
import re
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union
from urllib.parse import urlsplit

from ..crypto.rsa_key import PrivateKey, load_private_key_file
from ..exceptions import ConfigurationError
from ..signing.types import SigningConfig, DEFAULT_CHEF_VERSION

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r'\s+')
_LEADING_QUOTE = re.compile(r'^(\'|")')
_TRAILING_QUOTE = re.compile(r'(\'|")$')
_QUOTED_STRING = re.compile(r'["\']([^"\']*)["\']')
_CONFIG_KEY = re.compile(r'^[a-z]')
_CURRENT_DIR = '#{current_dir}'

_TRUE_VALUES = {'1', 't', 'T', 'TRUE', 'true', 'True'}

DEFAULT_PORTS = {
    'http': '80',
    'https': '443',
}


@dataclass
class KnifeConfig:
    """
    Parameters of a knife.rb config file.

    Attribute names match the knife.rb setting names; see
    https://docs.chef.io/workstation/config_rb/ for their meaning.
    """
    chef_server_url: str = ''
    host: str = ''
    port: str = ''
    chef_zero_enabled: bool = False
    chef_zero_port: str = ''
    client_key: Optional[PrivateKey] = field(default=None, repr=False)
    client_key_path: str = ''
    cookbook_copyright: str = ''
    cookbook_email: str = ''
    cookbook_license: str = ''
    cookbook_path: List[str] = field(default_factory=list)
    data_bag_encrypt_version: int = 0
    local_mode: bool = False
    log_level: str = ''
    log_location: str = ''
    node_name: str = ''
    no_proxy: List[str] = field(default_factory=list)
    syntax_check_cache_path: str = ''
    validation_client_name: str = ''
    validation_key: str = ''
    versioned_cookbooks: bool = False
    source_file: str = ''

    def to_signing_config(self, chef_version: str = DEFAULT_CHEF_VERSION) -> SigningConfig:
        """
        Build a signing configuration from ``node_name`` and ``client_key``.

        Raises:
            ConfigurationError: If either setting is missing
        """
        if not self.node_name:
            raise ConfigurationError(f"missing 'node_name' in {self.source_file or 'knife.rb'}", "MISSING_SETTING")

        key = self.client_key
        if key is None:
            if not self.client_key_path:
                raise ConfigurationError(f"missing 'client_key' in {self.source_file or 'knife.rb'}", "MISSING_SETTING")
            key = load_private_key_file(self.client_key_path)

        return SigningConfig(user_id=self.node_name, private_key=key, chef_version=chef_version)


def filter_quotes(value: str) -> str:
    """Strip one leading and one trailing quote character."""
    return _TRAILING_QUOTE.sub('', _LEADING_QUOTE.sub('', value))


def split_whitespace(value: str) -> List[str]:
    """Split on runs of whitespace."""
    return _WHITESPACE.split(value)


def _parse_bool(value: str) -> bool:
    return value in _TRUE_VALUES


def _parse_int(value: str) -> int:
    try:
        return int(value, 0)
    except ValueError:
        return 0


def _expand_path(value: str, config_dir: Path) -> str:
    """Resolve ``#{current_dir}`` and ``~`` in a path setting."""
    value = value.replace(_CURRENT_DIR, str(config_dir))
    return os.path.expanduser(value)


def parse_server_url(url: str) -> Tuple[str, str]:
    """
    Derive host and port from a chef_server_url.

    Args:
        url: Server URL

    Returns:
        tuple: (host, port); the port defaults from the scheme

    Raises:
        ConfigurationError: If the scheme is neither http nor https
    """
    try:
        parsed = urlsplit(url)
    except ValueError as e:
        raise ConfigurationError(f"Invalid chef_server_url: {e}", "INVALID_URL")

    host_port = parsed.netloc.split(':')
    if len(host_port) == 2:
        return host_port[0], host_port[1]

    if len(host_port) == 1:
        port = DEFAULT_PORTS.get(parsed.scheme)
        if port is None:
            raise ConfigurationError("Invalid http scheme", "INVALID_URL", {"url": url})
        return host_port[0], port

    raise ConfigurationError("Invalid host format", "INVALID_URL", {"url": url})


def _collect_list(first: str, lines: List[str], index: int) -> Tuple[List[str], int]:
    """
    Collect a Ruby array value that may continue over several lines.

    Returns the list items and the index of the last line consumed.
    """
    text = first
    if '[' in text:
        while ']' not in text and index + 1 < len(lines):
            index += 1
            text += ' ' + lines[index].strip()

    items = _QUOTED_STRING.findall(text)
    if not items:
        stripped = text.strip('[] ')
        items = [filter_quotes(item.strip()) for item in re.split(r'[,\s]+', stripped) if item.strip()]
    return items, index


def find_config_file() -> Path:
    """
    Locate knife.rb the same way knife does.

    Returns:
        Path: First existing candidate

    Raises:
        ConfigurationError: If no candidate exists
    """
    candidates = [
        Path('.chef') / 'knife.rb',
        Path.home() / '.chef' / 'knife.rb',
        Path('/etc/chef/client.rb'),
    ]

    for path in candidates:
        if path.exists():
            return path

    raise ConfigurationError("knife.rb configuration file not found", "FILE_NOT_FOUND")


def parse_config(config_file: Optional[Union[str, Path]] = None, load_key: bool = True) -> KnifeConfig:
    """
    Parse a knife.rb file.

    Args:
        config_file: Path to knife.rb; searched for when omitted
        load_key: Whether to load ``client_key`` eagerly

    Returns:
        KnifeConfig: Parsed settings

    Raises:
        ConfigurationError: If the file cannot be found, read or interpreted
        MalformedKeyError: If ``client_key`` cannot be loaded
    """
    path = Path(config_file) if config_file else find_config_file()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            lines = f.read().splitlines()
    except OSError as e:
        raise ConfigurationError(f"Failed to read configuration file: {e}", "FILE_ERROR", {"path": str(path)})

    config_dir = path.resolve().parent
    config = KnifeConfig(source_file=str(path))

    index = 0
    while index < len(lines):
        line = lines[index].strip()
        parts = _WHITESPACE.split(line, maxsplit=1)
        key = parts[0]
        raw = parts[1].strip() if len(parts) == 2 else ''
        value = filter_quotes(raw)

        if not _CONFIG_KEY.match(key):
            index += 1
            continue

        if key == 'chef_server_url':
            config.chef_server_url = value
            config.host, config.port = parse_server_url(value)
        elif key == 'chef_zero[:enabled]':
            config.chef_zero_enabled = _parse_bool(value)
        elif key == 'chef_zero[:port]':
            config.chef_zero_port = value
        elif key == 'client_key':
            config.client_key_path = _expand_path(value, config_dir)
            if load_key:
                config.client_key = load_private_key_file(config.client_key_path)
        elif key == 'cookbook_copyright':
            config.cookbook_copyright = value
        elif key == 'cookbook_email':
            config.cookbook_email = value
        elif key == 'cookbook_license':
            config.cookbook_license = value
        elif key == 'cookbook_path':
            items, index = _collect_list(raw, lines, index)
            config.cookbook_path = [_expand_path(item, config_dir) for item in items]
        elif key == 'data_bag_encrypt_version':
            config.data_bag_encrypt_version = _parse_int(value)
        elif key == 'local_mode':
            config.local_mode = _parse_bool(value)
        elif key == 'log_level':
            config.log_level = value.lstrip(':')
        elif key == 'log_location':
            config.log_location = value
        elif key == 'node_name':
            config.node_name = value
        elif key == 'no_proxy':
            config.no_proxy = [item for item in re.split(r',\s*', value) if item]
        elif key == 'syntax_check_cache_path':
            config.syntax_check_cache_path = _expand_path(value, config_dir)
        elif key == 'validation_client_name':
            config.validation_client_name = value
        elif key == 'validation_key':
            config.validation_key = _expand_path(value, config_dir)
        elif key == 'versioned_cookbooks':
            config.versioned_cookbooks = _parse_bool(value)

        index += 1

    logger.info(f"Loaded knife configuration from {path}")
    return config
