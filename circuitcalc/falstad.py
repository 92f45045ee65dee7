"""
Share links for the Falstad CircuitJS simulator.

The simulator reads a circuit from the `ctz` URL parameter, compressed
with lz-string's URI-safe encoding.
"""

from typing import Optional

from lzstring import LZString

from circuitcalc.config import get_settings

_lz = LZString()


def compress_circuit(text: str) -> str:
    """Compress circuit text into a URL-safe payload."""
    return _lz.compressToEncodedURIComponent(text)


def decompress_circuit(payload: str) -> str:
    """Inverse of compress_circuit()."""
    text = _lz.decompressFromEncodedURIComponent(payload)
    if text is None:
        raise ValueError("Payload is not a valid compressed circuit")
    return text


def falstad_url(circuit_text: str, base_url: Optional[str] = None) -> str:
    """Build a simulator link that opens the given circuit text."""
    base = base_url or get_settings().falstad_url
    return f"{base}?ctz={compress_circuit(circuit_text)}"
