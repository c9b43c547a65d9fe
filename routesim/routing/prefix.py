"""
Address blocks as seen by the routing core.

A prefix is the pair (network address, mask length). Host bits are kept
exactly as given: "10.1.0.5/16" and "10.1.0.0/16" are different prefixes.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass(frozen=True)
class Prefix:
    """
    An address block: network address plus mask length.
    """

    network: IPAddress
    length: int

    def __post_init__(self) -> None:
        if not isinstance(self.network, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            object.__setattr__(self, "network", ipaddress.ip_address(self.network))

        if isinstance(self.length, bool) or not isinstance(self.length, int):
            raise ValueError(f"Mask length must be an integer, got {self.length!r}")

        max_len = self.network.max_prefixlen
        if not 0 <= self.length <= max_len:
            raise ValueError(
                f"Mask length {self.length} out of range [0, {max_len}] for {self.network}"
            )

    @classmethod
    def parse(cls, text: str) -> Prefix:
        """
        Parse "address/length" notation, e.g. "10.1.0.0/16".
        """
        if isinstance(text, Prefix):
            return text

        address, sep, length = str(text).strip().partition("/")
        if not sep:
            raise ValueError(f"Prefix {text!r} is missing a '/length' part")

        try:
            mask_len = int(length)
        except ValueError:
            raise ValueError(f"Invalid mask length in prefix {text!r}") from None

        return cls(ipaddress.ip_address(address), mask_len)

    @classmethod
    def from_mask(cls, network: str | IPAddress, mask: str | int) -> Prefix:
        """
        Build a prefix from an address and either a dotted netmask
        ("255.255.0.0") or a mask length.
        """
        address = ipaddress.ip_address(network)

        if isinstance(mask, int):
            return cls(address, mask)

        mask_text = str(mask).strip()
        if mask_text.isdigit():
            return cls(address, int(mask_text))

        zero = "0.0.0.0" if address.version == 4 else "::"
        try:
            length = ipaddress.ip_network(f"{zero}/{mask_text}").prefixlen
        except ValueError:
            raise ValueError(f"Invalid netmask {mask_text!r}") from None

        return cls(address, length)

    def contains(self, address: str | IPAddress) -> bool:
        """
        Return True if the address falls inside this block.
        """
        addr = ipaddress.ip_address(address)
        if addr.version != self.network.version:
            return False

        block = ipaddress.ip_network(f"{self.network}/{self.length}", strict=False)
        return addr in block

    def sort_key(self) -> tuple[int, int, int]:
        return (self.network.version, int(self.network), self.length)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Prefix):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return f"{self.network}/{self.length}"
