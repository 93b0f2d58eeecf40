"""
Chef server resources

Thin helpers over ``ChefHttpClient``. Getters return the decoded JSON body
as-is; single-item lookups return ``None`` when the server answers 404.
Nodes and API clients can also be created and deleted.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .exceptions import ServerCommunicationError
from .http_client import ChefHttpClient, decode_json

logger = logging.getLogger(__name__)


def _segment(value: str) -> str:
    return quote(str(value), safe='')


def _get(client: ChefHttpClient, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
    return client.get_json(endpoint, params)


def _get_item(client: ChefHttpClient, endpoint: str) -> Optional[Any]:
    response = client.get(endpoint)
    if response.status_code == 404:
        logger.debug(f"{endpoint} not found")
        return None
    return decode_json(response)


def _raise_for_chef_error(response, data: Any) -> None:
    if isinstance(data, dict) and data.get('error'):
        errors = data['error']
        message = errors[0] if isinstance(errors, list) else errors
        raise ServerCommunicationError(
            str(message),
            error_code='SERVER_ERROR',
            http_status=response.status_code,
            details={'errors': errors}
        )


def _json_or_empty(response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {}


def _create(client: ChefHttpClient, endpoint: str, body: Dict[str, Any]) -> Dict[str, Any]:
    response = client.post(endpoint, body)
    if response.status_code != 201:
        raise ServerCommunicationError(
            f"Server returned {response.status_code} {response.reason}",
            error_code='HTTP_ERROR',
            http_status=response.status_code,
            details={'url': response.url}
        )

    data = _json_or_empty(response)
    _raise_for_chef_error(response, data)
    logger.info(f"Created {endpoint}/{body.get('name', '')}")
    return data if isinstance(data, dict) else {}


def _delete(client: ChefHttpClient, endpoint: str) -> Any:
    response = client.delete(endpoint)
    data = _json_or_empty(response)
    _raise_for_chef_error(response, data)
    logger.info(f"Deleted {endpoint}")
    return data


# Clients

def get_clients(client: ChefHttpClient) -> Dict[str, str]:
    """Map of API client names to their URLs."""
    return _get(client, 'clients')


def get_client(client: ChefHttpClient, name: str) -> Optional[Dict[str, Any]]:
    return _get_item(client, f'clients/{_segment(name)}')


def create_client(client: ChefHttpClient, api_client: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create an API client.

    Args:
        client: Connected client
        api_client: Client document, at least ``{"name": ..., "admin": ...}``

    Returns:
        dict: The submitted document merged with the server's reply, which
        carries the new ``private_key`` and ``uri``

    Raises:
        ServerCommunicationError: If the server does not answer 201 or
            reports an error
    """
    body = dict(api_client)
    body.setdefault('admin', False)
    created = _create(client, 'clients', body)
    return {**body, **created}


def delete_client(client: ChefHttpClient, name: str) -> None:
    _delete(client, f'clients/{_segment(name)}')


# Cookbooks

def get_cookbooks(client: ChefHttpClient) -> Dict[str, Any]:
    """Map of cookbook names to their URL and available versions."""
    return _get(client, 'cookbooks')


def get_cookbook(client: ChefHttpClient, name: str) -> Optional[Dict[str, Any]]:
    return _get_item(client, f'cookbooks/{_segment(name)}')


def get_cookbook_version(client: ChefHttpClient, name: str, version: str) -> Optional[Dict[str, Any]]:
    """Full metadata and file manifest for one cookbook version."""
    return _get_item(client, f'cookbooks/{_segment(name)}/{_segment(version)}')


# Data bags

def get_data(client: ChefHttpClient) -> Dict[str, str]:
    """Map of data bag names to their URLs."""
    return _get(client, 'data')


def get_data_by_name(client: ChefHttpClient, name: str) -> Optional[Dict[str, str]]:
    """Map of item names in a data bag to their URLs."""
    return _get_item(client, f'data/{_segment(name)}')


# Environments

def get_environments(client: ChefHttpClient) -> Dict[str, str]:
    return _get(client, 'environments')


def get_environment(client: ChefHttpClient, name: str) -> Optional[Dict[str, Any]]:
    return _get_item(client, f'environments/{_segment(name)}')


def get_environment_cookbooks(client: ChefHttpClient, name: str) -> Dict[str, Any]:
    """Cookbooks and versions available to an environment."""
    return _get(client, f'environments/{_segment(name)}/cookbooks')


def get_environment_cookbook(client: ChefHttpClient, name: str, cookbook: str) -> Optional[Dict[str, Any]]:
    return _get_item(client, f'environments/{_segment(name)}/cookbooks/{_segment(cookbook)}')


def get_environment_nodes(client: ChefHttpClient, name: str) -> Dict[str, str]:
    return _get(client, f'environments/{_segment(name)}/nodes')


def get_environment_recipes(client: ChefHttpClient, name: str) -> List[str]:
    return _get(client, f'environments/{_segment(name)}/recipes')


def get_environment_role(client: ChefHttpClient, name: str, role: str) -> Optional[Dict[str, List[str]]]:
    """Run list a role expands to within an environment."""
    return _get_item(client, f'environments/{_segment(name)}/roles/{_segment(role)}')


# Nodes

def get_nodes(client: ChefHttpClient) -> Dict[str, str]:
    """Map of node names to their URLs."""
    return _get(client, 'nodes')


def get_node(client: ChefHttpClient, name: str) -> Optional[Dict[str, Any]]:
    return _get_item(client, f'nodes/{_segment(name)}')


def create_node(client: ChefHttpClient, node: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a node; the server rejects names that already exist.

    ``chef_type`` and ``json_class`` are always set, and a missing run list
    or attribute level is sent empty.

    Returns:
        dict: The document that was sent

    Raises:
        ServerCommunicationError: If the server does not answer 201 or
            reports an error
    """
    body = dict(node)
    body['chef_type'] = 'node'
    body['json_class'] = 'Chef::Node'
    for key, empty in (('run_list', list), ('normal', dict), ('default', dict), ('override', dict)):
        if body.get(key) is None:
            body[key] = empty()

    _create(client, 'nodes', body)
    return body


def delete_node(client: ChefHttpClient, name: str) -> Dict[str, Any]:
    """Delete a node and return the document the server held for it."""
    return _delete(client, f'nodes/{_segment(name)}')


# Principals

def get_principal(client: ChefHttpClient, name: str) -> Optional[Dict[str, Any]]:
    """Public key and type of a user or client."""
    return _get_item(client, f'principals/{_segment(name)}')


# Roles

def get_roles(client: ChefHttpClient) -> Dict[str, str]:
    return _get(client, 'roles')


def get_role(client: ChefHttpClient, name: str) -> Optional[Dict[str, Any]]:
    return _get_item(client, f'roles/{_segment(name)}')


# Search

def get_search_indexes(client: ChefHttpClient) -> Dict[str, str]:
    """Map of search index names to their URLs."""
    return _get(client, 'search')


def search(
    client: ChefHttpClient,
    index: str,
    query: str,
    sort: Optional[str] = None,
    rows: Optional[int] = None,
    start: Optional[int] = None
) -> Dict[str, Any]:
    """
    Run a search query against an index.

    Args:
        client: Connected client
        index: Index name (node, role, client, environment or a data bag)
        query: Solr query, e.g. ``hostname:memcached*``
        sort: Optional sort order
        rows: Optional page size
        start: Optional offset of the first row

    Returns:
        dict: ``{"total": ..., "start": ..., "rows": [...]}``
    """
    params: Dict[str, Any] = {'q': query}
    if sort:
        params['sort'] = sort
    if rows is not None:
        params['rows'] = str(rows)
    if start is not None:
        params['start'] = str(start)

    return _get(client, f'search/{_segment(index)}', params)


# Users

def get_users(client: ChefHttpClient) -> Dict[str, str]:
    return _get(client, 'users')
