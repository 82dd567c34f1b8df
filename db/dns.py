"""
db/dns.py
---------
IPv4-preferring hostname resolution.

Some hosting providers publish AAAA records that are unreachable from the
application's network, so connection hosts are pinned to an IPv4 literal
before the pool is built.
"""

import ipaddress
import socket

from models.connection import DnsOutcome, Fallback, Resolved
from utils.logger import get_logger

logger = get_logger(__name__)


def is_ip_literal(host: str) -> bool:
    """True for IPv4 and IPv6 literals (brackets allowed)."""
    try:
        ipaddress.ip_address(host.strip("[]"))
        return True
    except ValueError:
        return False


def resolve_ipv4(host: str) -> DnsOutcome:
    """
    Look up the first IPv4 address of a hostname.

    Never raises: lookup failures come back as a ``Fallback`` carrying
    the original hostname and the cause.
    """
    try:
        infos = socket.getaddrinfo(host, None, family=socket.AF_INET, type=socket.SOCK_STREAM)
    except (OSError, UnicodeError) as e:
        return Fallback(host=host, cause=e)
    if not infos:
        return Fallback(host=host, cause=socket.gaierror(f"no IPv4 address for {host}"))
    address = infos[0][4][0]
    return Resolved(host=host, address=address)
