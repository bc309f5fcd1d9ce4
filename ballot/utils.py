import re

from Crypto.Hash import keccak  # type: ignore

from ballot.exceptions import InvalidIdentity, InvalidProposalName

BYTES32_LENGTH = 32

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def keccak256(x: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=x).digest()


# Converts bytes to an integer
def bytes_to_int(bytez):
    o = 0
    for b in bytez:
        o = o * 256 + b
    return o


def is_checksum_encoded(addr):
    return addr == checksum_encode(addr)


# Encodes an address using ethereum's checksum scheme
def checksum_encode(addr):  # Expects an input of the form 0x<40 hex chars>
    assert addr[:2] == "0x" and len(addr) == 42, addr
    o = ""
    v = bytes_to_int(keccak256(addr[2:].lower().encode("utf-8")))
    for i, c in enumerate(addr[2:]):
        if c in "0123456789":
            o += c
        else:
            o += c.upper() if (v & (2 ** (255 - 4 * i))) else c.lower()
    return "0x" + o


def to_identity(addr, strict_checksum: bool = False) -> str:
    """
    Normalize an address to its checksummed form.

    Accepts a ``0x``-prefixed hex string or 20 raw bytes. All-lowercase and
    all-uppercase hex strings carry no checksum and are always accepted. A
    mixed-case string is taken to be checksummed; with ``strict_checksum``
    a wrong checksum is rejected, otherwise the casing is ignored.
    """
    if isinstance(addr, (bytes, bytearray)):
        if len(addr) != 20:
            raise InvalidIdentity(f"expected 20 address bytes, got {len(addr)}")
        return checksum_encode("0x" + bytes(addr).hex())

    if not isinstance(addr, str) or not _ADDRESS_RE.match(addr):
        raise InvalidIdentity(
            f"invalid address: {addr!r}", hint="addresses are 0x followed by 40 hex digits"
        )

    body = addr[2:]
    ret = checksum_encode("0x" + body.lower())
    mixed_case = body != body.lower() and body != body.upper()
    if strict_checksum and mixed_case and ret != addr:
        raise InvalidIdentity(
            f"address has an invalid checksum: {addr}",
            hint=f"the correct checksummed form is: {ret}",
        )
    return ret


def format_bytes32(name) -> bytes:
    """
    Encode a proposal name as a 32-byte identifier, right-padded with NULs.
    """
    if isinstance(name, str):
        bytez = name.encode("utf-8")
    elif isinstance(name, (bytes, bytearray)):
        bytez = bytes(name)
    else:
        raise InvalidProposalName(f"proposal name must be str or bytes, got {type(name).__name__}")

    if len(bytez) > BYTES32_LENGTH:
        raise InvalidProposalName(
            f"proposal name is {len(bytez)} bytes long, the limit is {BYTES32_LENGTH}: {name!r}"
        )
    return bytez.ljust(BYTES32_LENGTH, b"\x00")


def parse_bytes32(bytez: bytes) -> str:
    return bytez.rstrip(b"\x00").decode("utf-8", errors="replace")
