"""Structural content hashing and ``$ref`` collection.

Both functions feed a canonical byte stream into a SHA-256 accumulator while
walking a decoded JSON/YAML value:

* objects: ``{``, then ``key`` ``:`` value for every key in sorted order, ``}``
* arrays: ``[``, every element in its original order, ``]``
* strings: the text wrapped in double quotes
* numbers: canonical numeric text (``1``, ``1.5``)
* booleans and null: ``true`` / ``false`` / ``null``

Object key order therefore never affects the digest, while array order and
any value change always do.  Digests are the first 16 hex characters of the
SHA-256.

:func:`extract_refs_and_hash` collects ``$ref`` targets during the same walk
so that large documents are only traversed once per operation or schema.
"""

from __future__ import annotations

import hashlib
from typing import Any

REF_PREFIXES = ("#/definitions/", "#/components/schemas/")

_DIGEST_CHARS = 16


def strip_ref_prefix(ref: str) -> str:
    """Turn ``#/components/schemas/Pet`` (or ``#/definitions/Pet``) into ``Pet``."""
    for prefix in REF_PREFIXES:
        if ref.startswith(prefix):
            return ref[len(prefix):]
    return ref


def extract_refs_and_hash(value: Any) -> tuple[list[str], str]:
    """Collect every ``$ref`` target beneath *value* and digest it in one pass.

    Args:
        value: A decoded JSON/YAML value (dict, list, or scalar).

    Returns:
        ``(refs, digest)`` where *refs* is deduplicated and sorted, with the
        dialect-specific prefixes stripped.
    """
    refs: set[str] = set()
    hasher = hashlib.sha256()
    _walk(value, hasher, refs)
    return sorted(refs), hasher.hexdigest()[:_DIGEST_CHARS]


def compute_hash(value: Any) -> str:
    """Return the structural digest of *value* without collecting references."""
    hasher = hashlib.sha256()
    _walk(value, hasher, None)
    return hasher.hexdigest()[:_DIGEST_CHARS]


def _walk(value: Any, hasher: Any, refs: set[str] | None) -> None:
    if isinstance(value, dict):
        hasher.update(b"{")
        # YAML may produce non-string keys (e.g. unquoted status codes)
        items = sorted(
            ((str(key), item) for key, item in value.items()), key=lambda pair: pair[0]
        )
        for key, item in items:
            hasher.update(key.encode("utf-8"))
            hasher.update(b":")
            if refs is not None and key == "$ref" and isinstance(item, str):
                refs.add(strip_ref_prefix(item))
            _walk(item, hasher, refs)
        hasher.update(b"}")
    elif isinstance(value, list):
        hasher.update(b"[")
        for item in value:
            _walk(item, hasher, refs)
        hasher.update(b"]")
    else:
        hasher.update(_scalar_text(value).encode("utf-8"))


def _scalar_text(value: Any) -> str:
    # bool before int: True is an int subclass
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    # strings, plus dates and other YAML scalars
    return f'"{value}"'
