# Copyright 2025 TIER IV, INC. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""sha256 digest helpers, the only content identifier supported by ECS images."""

from __future__ import annotations

import re
from hashlib import sha256
from pathlib import Path
from typing import IO, Any

from pydantic import GetCoreSchemaHandler
from pydantic_core import CoreSchema, core_schema
from typing_extensions import Self

from .io import DEFAULT_FILE_CHUNK_SIZE

SHA256_HEX_PATTERN = re.compile(r"^[0-9a-f]{64}$")


class Sha256Digest:
    SHA256_ALG = "sha256"
    sha256_impl = staticmethod(sha256)

    def __init__(self, _digest: str | bytes):
        if isinstance(_digest, str):
            if not SHA256_HEX_PATTERN.match(_digest):
                raise ValueError(f"not a lowercase hex sha256 digest: {_digest!r}")
            self._digest_hex = _digest
            self._digest_bytes = bytes.fromhex(_digest)
        else:
            if len(_digest) != 32:
                raise ValueError(f"invalid sha256 digest length: {len(_digest)}")
            self._digest_bytes = _digest
            self._digest_hex = _digest.hex()

    def __hash__(self) -> int:
        return int.from_bytes(self._digest_bytes, byteorder="big")

    def __eq__(self, value: object) -> bool:
        if not isinstance(value, self.__class__):
            return False
        return self.digest == value.digest

    @property
    def digest_hex(self) -> str:
        return self._digest_hex

    @property
    def digest(self) -> bytes:
        return self._digest_bytes

    @classmethod
    def _from_str_validator(cls, data: Any) -> Self:
        if isinstance(data, cls):
            return data
        if isinstance(data, str):
            _alg, _digest_hex = data.split(":", maxsplit=1)
            if _alg != cls.SHA256_ALG:
                raise ValueError(f"not a sha256 digest: {data}")
            return cls(_digest_hex)
        raise ValueError(f"invalid {type(data)=}")

    def _to_str_serializer(self) -> str:
        return f"{self.SHA256_ALG}:{self._digest_hex}"

    def __str__(self):
        return self._to_str_serializer()

    __repr__ = __str__

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        _plain_validator = core_schema.no_info_plain_validator_function(
            cls._from_str_validator
        )
        _plain_serializer = core_schema.plain_serializer_function_ser_schema(
            cls._to_str_serializer
        )

        json_schema = core_schema.chain_schema(
            [
                core_schema.str_schema(),
                _plain_validator,
            ]
        )
        return core_schema.json_or_python_schema(
            json_schema=json_schema,
            python_schema=_plain_validator,
            serialization=_plain_serializer,
        )


def calculate_digest(data: bytes) -> Sha256Digest:
    """Digest a small, fully buffered payload."""
    return Sha256Digest(sha256(data).digest())


def stream_digest(
    _src: IO[bytes], *, chunk_size: int = DEFAULT_FILE_CHUNK_SIZE
) -> Sha256Digest:
    """Digest <_src> by reading it chunk by chunk till EOF."""
    _hasher = sha256()
    while _chunk := _src.read(chunk_size):
        _hasher.update(_chunk)
    return Sha256Digest(_hasher.digest())


def file_sha256(
    fpath: str | Path, *, chunk_size: int = DEFAULT_FILE_CHUNK_SIZE
) -> Sha256Digest:
    with open(fpath, "rb") as f:
        return stream_digest(f, chunk_size=chunk_size)


class DigestWriter:
    """A write-only sink that digests every byte going through it.

    If <dst> is specified, the bytes are also forwarded to <dst>, so that
        the digest is calculated over exactly the same stream as written
        to disk, without buffering the whole stream in memory.

    This class is NOT thread-safe, each pack operation owns its own instance.
    """

    def __init__(self, dst: IO[bytes] | None = None) -> None:
        self._dst = dst
        self._hasher = sha256()
        self._size = 0

    def write(self, data: bytes) -> int:
        _len = len(data)
        self._hasher.update(data)
        if self._dst is not None:
            self._dst.write(data)
        self._size += _len
        return _len

    def flush(self) -> None:
        if self._dst is not None:
            self._dst.flush()

    @property
    def size(self) -> int:
        """Total bytes written so far."""
        return self._size

    @property
    def digest(self) -> Sha256Digest:
        return Sha256Digest(self._hasher.digest())

    @property
    def digest_hex(self) -> str:
        return self._hasher.hexdigest()
