"""Dotted-quad helpers.

These work octet by octet on strings so half-typed input from an editor
degrades to "no match" / "zero network" instead of raising.
"""

from __future__ import annotations

from typing import List, Optional

from .config import DEFAULT_SUBNET_MASK


def _octets(text: Optional[str]) -> List[int]:
    # Non-numeric segments count as 0; the caller checks the segment count.
    out: List[int] = []
    for part in (text or "").strip().split("."):
        try:
            out.append(int(part))
        except ValueError:
            out.append(0)
    return out


def is_valid_ip(ip: Optional[str]) -> bool:
    """True for four dot-separated integers in 0..255."""
    if not ip:
        return False
    parts = ip.split(".")
    if len(parts) != 4:
        return False
    for part in parts:
        if not (part.isascii() and part.isdigit()):
            return False
        if not 0 <= int(part) <= 255:
            return False
    return True


def get_subnet(ip: str, mask: str = DEFAULT_SUBNET_MASK) -> str:
    """Octet-wise AND of ``ip`` and ``mask``.

    Malformed input yields the zero network ``0.0.0.0``.
    """
    ip_parts = _octets(ip)
    mask_parts = _octets(mask)
    if len(ip_parts) != 4 or len(mask_parts) != 4:
        return "0.0.0.0"
    return ".".join(str(p & m) for p, m in zip(ip_parts, mask_parts))


def are_in_same_subnet(ip1: str, ip2: str, mask: str = DEFAULT_SUBNET_MASK) -> bool:
    a = _octets(ip1)
    b = _octets(ip2)
    m = _octets(mask)
    if len(a) != 4 or len(b) != 4 or len(m) != 4:
        return False
    return all((x & k) == (y & k) for x, y, k in zip(a, b, m))


def mask_to_prefix_length(mask: Optional[str]) -> int:
    """Count of set bits in a dotted mask (0 for malformed masks)."""
    parts = _octets(mask)
    if len(parts) != 4:
        return 0
    return sum(bin(p & 0xFF).count("1") for p in parts)


def network_prefix(ip: str, mask: Optional[str] = None) -> str:
    """``'<network>/<prefixlen>'`` for an interface address, e.g. ``192.168.1.0/24``."""
    mask = mask or DEFAULT_SUBNET_MASK
    return f"{get_subnet(ip, mask)}/{mask_to_prefix_length(mask)}"
