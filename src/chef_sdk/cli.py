"""
Command-line interface for the Chef API Python SDK
Signs requests, fetches signed API resources and generates client keys
"""

import argparse
import json
import logging
import sys
from typing import Optional, Tuple

from .version import __version__
from .config.knife_config import parse_config
from .crypto.rsa_key import generate_private_key, load_private_key
from .exceptions import ChefSDKError, ConfigurationError
from .http_client import connect, decode_json
from .signing.chef_signer import sign_request
from .signing.types import SignableRequest, SigningConfig, SigningOptions, SigningError, DEFAULT_CHEF_VERSION
from .signing.utils import read_body


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='chef-sign',
        description='Chef X-Ops request signing from the command line'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Chef API Python SDK {__version__}'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    setup_sign_parser(subparsers)
    setup_get_parser(subparsers)
    setup_keygen_parser(subparsers)

    return parser


def _add_credential_arguments(parser):
    parser.add_argument('--config', help='Path to knife.rb (searched for when omitted)')
    parser.add_argument('--user', help='Client or user name (defaults to node_name from knife.rb)')
    parser.add_argument('--key', help='Private key PEM file (defaults to client_key from knife.rb)')
    parser.add_argument('--chef-version', default=DEFAULT_CHEF_VERSION, help=f'X-Chef-Version value (default: {DEFAULT_CHEF_VERSION})')


def setup_sign_parser(subparsers):
    """Setup request signing subcommand."""
    sign_parser = subparsers.add_parser('sign', help='Print the authentication headers for a request')
    sign_parser.add_argument('method', help='HTTP method, e.g. GET')
    sign_parser.add_argument('url', help='Request URL or path, e.g. /organizations/acme/nodes')
    sign_parser.add_argument('--server-url', default='http://localhost', help='Base URL used when a bare path is given')
    sign_parser.add_argument('--body', help='Request body')
    sign_parser.add_argument('--body-file', help='Read the request body from a file')
    sign_parser.add_argument('--timestamp', help='Fixed X-Ops-Timestamp, e.g. 2013-10-27T20:45:25Z')
    sign_parser.add_argument('--format', choices=['text', 'json'], default='text', help='Output format (default: text)')
    _add_credential_arguments(sign_parser)


def setup_get_parser(subparsers):
    """Setup signed GET subcommand."""
    get_parser = subparsers.add_parser('get', help='Send a signed GET request using knife.rb settings')
    get_parser.add_argument('endpoint', help='Endpoint relative to chef_server_url, e.g. nodes')
    get_parser.add_argument('--config', help='Path to knife.rb (searched for when omitted)')
    get_parser.add_argument('--chef-version', default=DEFAULT_CHEF_VERSION, help='X-Chef-Version value')
    get_parser.add_argument('--insecure', action='store_true', help='Skip TLS certificate verification')


def setup_keygen_parser(subparsers):
    """Setup key generation subcommand."""
    keygen_parser = subparsers.add_parser('keygen', help='Generate an RSA client key')
    keygen_parser.add_argument('--bits', type=int, default=2048, help='Key size in bits (default: 2048)')
    keygen_parser.add_argument('--output', '-o', help='Write the PEM to a file instead of stdout')


def resolve_credentials(args) -> Tuple[str, str]:
    """Return (user_id, key_path) from arguments, falling back to knife.rb."""
    user_id, key = args.user, args.key
    if user_id and key:
        return user_id, key

    knife = parse_config(args.config, load_key=False)
    user_id = user_id or knife.node_name
    key = key or knife.client_key_path
    if not user_id or not key:
        raise ConfigurationError("node_name and client_key must be given or set in knife.rb", "MISSING_SETTING")
    return user_id, key


def _request_url(url: str, server_url: str) -> str:
    if '://' in url:
        return url
    return server_url.rstrip('/') + '/' + url.lstrip('/')


def handle_sign_command(args) -> int:
    """Handle request signing command."""
    if args.body is not None and args.body_file:
        print("Error: Cannot specify both --body and --body-file", file=sys.stderr)
        return 1

    user_id, key = resolve_credentials(args)
    config = SigningConfig(
        user_id=user_id,
        private_key=load_private_key(key),
        chef_version=args.chef_version
    )

    body = args.body
    if args.body_file:
        with open(args.body_file, 'rb') as f:
            body = read_body(f)

    request = SignableRequest(
        method=args.method,
        url=_request_url(args.url, args.server_url),
        headers={},
        body=body
    )
    result = sign_request(request, config, SigningOptions(timestamp=args.timestamp))

    if args.format == 'json':
        print(json.dumps(result.headers, indent=2))
    else:
        for name, value in result.headers.items():
            print(f"{name}: {value}")

    return 0


def handle_get_command(args) -> int:
    """Handle signed GET command."""
    with connect(args.config, chef_version=args.chef_version, verify_ssl=not args.insecure) as client:
        data = decode_json(client.get(args.endpoint))
    print(json.dumps(data, indent=2, sort_keys=True))
    return 0


def handle_keygen_command(args) -> int:
    """Handle key generation command."""
    if args.bits < 1024:
        print("Error: Key size must be at least 1024 bits", file=sys.stderr)
        return 1

    pem = generate_private_key(args.bits).to_pem()

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(pem)
        print(f"Private key written to: {args.output}")
    else:
        print(pem, end='')

    return 0


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(asctime)s %(name)s %(levelname)s %(message)s')

    try:
        if args.command == 'sign':
            return handle_sign_command(args)
        elif args.command == 'get':
            return handle_get_command(args)
        elif args.command == 'keygen':
            return handle_keygen_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except (ChefSDKError, SigningError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
