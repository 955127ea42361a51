"""
P-384 prime-order group operations used by the VOPRF.

Point arithmetic comes from the ecdsa package. Hashing to the curve follows
the P384_XMD:SHA-384_SSWU_RO_ suite of RFC 9380 and hashing to scalars the
OPRF(P-384, SHA-384) definition of RFC 9497.
"""

import hashlib
import os
from typing import Callable, Optional

from ecdsa.curves import NIST384p
from ecdsa.ellipticcurve import INFINITY, PointJacobi
from ecdsa.errors import MalformedPointError

from .types import MalformedInputError

ELEMENT_SIZE = 49  # compressed SEC1 point
SCALAR_SIZE = 48
HASH_SIZE = 48  # SHA-384 output

# expand_message_xmd parameters for SHA-384
_HASH_BLOCK_SIZE = 128
# Bytes drawn per field element: ceil((ceil(log2(p)) + k) / 8) with k = 192
_FIELD_EXPAND_SIZE = 72

# SSWU constant for P-384
_SSWU_Z = -12

RandomSource = Callable[[int], bytes]


def i2osp(value: int, length: int) -> bytes:
    """Integer to big-endian octet string of fixed length."""
    return value.to_bytes(length, byteorder="big")


def length_prefixed(data: bytes) -> bytes:
    """Prefix data with its length as a 2-byte big-endian integer."""
    return i2osp(len(data), 2) + data


def expand_message_xmd(msg: bytes, dst: bytes, length: int) -> bytes:
    """
    Expand msg into length uniformly random bytes using SHA-384.

    Args:
        msg: Input message
        dst: Domain separation tag (at most 255 bytes)
        length: Number of output bytes

    Returns:
        Pseudo-random bytes
    """
    ell = -(-length // HASH_SIZE)
    if ell > 255 or length > 0xFFFF:
        raise ValueError(f"Requested output too long: {length} bytes")
    if len(dst) > 255:
        raise ValueError("Domain separation tag too long")

    dst_prime = dst + i2osp(len(dst), 1)
    msg_prime = bytes(_HASH_BLOCK_SIZE) + msg + i2osp(length, 2) + i2osp(0, 1) + dst_prime

    b_0 = hashlib.sha384(msg_prime).digest()
    b_i = hashlib.sha384(b_0 + i2osp(1, 1) + dst_prime).digest()
    uniform = b_i
    for i in range(2, ell + 1):
        mixed = bytes(x ^ y for x, y in zip(b_0, b_i))
        b_i = hashlib.sha384(mixed + i2osp(i, 1) + dst_prime).digest()
        uniform += b_i

    return uniform[:length]


def hash_to_field(msg: bytes, dst: bytes, count: int, modulus: int) -> list[int]:
    """Hash msg to count integers modulo modulus."""
    uniform = expand_message_xmd(msg, dst, count * _FIELD_EXPAND_SIZE)
    return [
        int.from_bytes(uniform[i * _FIELD_EXPAND_SIZE : (i + 1) * _FIELD_EXPAND_SIZE], "big")
        % modulus
        for i in range(count)
    ]


class P384Group:
    """The P-384 group with the serialization used on the wire."""

    curve = NIST384p.curve
    generator = NIST384p.generator
    order = NIST384p.order

    def __init__(self, random_bytes: Optional[RandomSource] = None) -> None:
        self._random_bytes = random_bytes or os.urandom
        self._p = self.curve.p()
        self._a = self.curve.a()
        self._b = self.curve.b()

    # MARK: - Scalars

    def random_scalar(self) -> int:
        """Uniform non-zero scalar, by rejection sampling."""
        while True:
            candidate = int.from_bytes(self._random_bytes(SCALAR_SIZE), "big")
            if 0 < candidate < self.order:
                return candidate

    def hash_to_scalar(self, msg: bytes, dst: bytes) -> int:
        return hash_to_field(msg, dst, 1, self.order)[0]

    def serialize_scalar(self, scalar: int) -> bytes:
        return i2osp(scalar % self.order, SCALAR_SIZE)

    def deserialize_scalar(self, data: bytes) -> int:
        if len(data) != SCALAR_SIZE:
            raise MalformedInputError(f"Scalar must be {SCALAR_SIZE} bytes, got {len(data)}")
        scalar = int.from_bytes(data, "big")
        if scalar >= self.order:
            raise MalformedInputError("Scalar is not reduced modulo the group order")
        return scalar

    # MARK: - Elements

    @staticmethod
    def is_identity(element) -> bool:
        return element == INFINITY

    def serialize_element(self, element) -> bytes:
        if self.is_identity(element):
            raise MalformedInputError("Cannot serialize the identity element")
        return element.to_bytes("compressed")

    def deserialize_element(self, data: bytes) -> PointJacobi:
        if len(data) != ELEMENT_SIZE:
            raise MalformedInputError(f"Element must be {ELEMENT_SIZE} bytes, got {len(data)}")
        try:
            return PointJacobi.from_bytes(
                self.curve, data, valid_encodings=("compressed",), order=self.order
            )
        except MalformedPointError as e:
            raise MalformedInputError(f"Invalid P-384 element: {e}") from e

    def hash_to_group(self, msg: bytes, dst: bytes):
        """Hash msg to a curve point (random oracle construction)."""
        u0, u1 = hash_to_field(msg, dst, 2, self._p)
        return self._map_to_curve(u0) + self._map_to_curve(u1)

    # MARK: - Simplified SWU map

    def _sqrt(self, value: int) -> int:
        # p = 3 mod 4
        return pow(value, (self._p + 1) // 4, self._p)

    def _is_square(self, value: int) -> bool:
        return pow(value, (self._p - 1) // 2, self._p) in (0, 1)

    def _map_to_curve(self, u: int) -> PointJacobi:
        p, a, b = self._p, self._a, self._b
        z = _SSWU_Z % p

        tv1 = (z * z * pow(u, 4, p) + z * u * u) % p
        tv1 = pow(tv1, p - 2, p) if tv1 else 0

        if tv1 == 0:
            x1 = b * pow(z * a, p - 2, p) % p
        else:
            x1 = (-b) * pow(a, p - 2, p) * (1 + tv1) % p

        gx1 = (pow(x1, 3, p) + a * x1 + b) % p
        if self._is_square(gx1):
            x, y = x1, self._sqrt(gx1)
        else:
            x = z * u * u * x1 % p
            y = self._sqrt((pow(x, 3, p) + a * x + b) % p)

        if u % 2 != y % 2:
            y = p - y

        return PointJacobi(self.curve, x, y, 1, self.order)
