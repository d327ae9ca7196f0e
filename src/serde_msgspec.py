"""msgspec conventions shared across cargo2hf.

Three struct bases cover the three kinds of payload the tool handles:

* :class:`StructBaseStrict` for documents cargo2hf owns (config, run
  report, lockfile entries); unknown keys are an error.
* :class:`StructBaseCompat` for payloads owned by someone else (the
  crates.io API); unknown keys are ignored.
* :class:`StructBaseHotPath` for extracted rows, created in bulk and never
  mutated.
"""

from __future__ import annotations

import re
from pathlib import Path

import msgspec


class StructBaseStrict(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    omit_defaults=True,
    repr_omit_defaults=True,
    forbid_unknown_fields=True,
):
    """Base for payloads whose schema cargo2hf controls."""


class StructBaseCompat(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    omit_defaults=True,
    repr_omit_defaults=True,
    forbid_unknown_fields=False,
):
    """Base for third-party payloads that may grow new fields."""


class StructBaseHotPath(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    gc=False,
    cache_hash=True,
):
    """Base for high-volume immutable records."""


_AT_PATH = re.compile(r"\s+-\s+at\s+`(?P<path>[^`]+)`$")


def _enc_hook(obj: object) -> object:
    if isinstance(obj, Path):
        return obj.as_posix()
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    msg = f"Cannot encode {type(obj).__name__} as JSON."
    raise TypeError(msg)


_ENCODERS = {
    False: msgspec.json.Encoder(enc_hook=_enc_hook, order="deterministic"),
    True: msgspec.json.Encoder(enc_hook=_enc_hook, order="sorted"),
}


def encode_json(obj: object, *, pretty: bool = False, sort_keys: bool = False) -> bytes:
    """Encode ``obj`` as JSON.

    Parameters
    ----------
    obj
        Structs, builtins, paths and sets are supported.
    pretty
        Indent the output by two spaces.
    sort_keys
        Sort every mapping and struct by key instead of keeping field order.

    Returns
    -------
    bytes
        UTF-8 JSON document.
    """
    raw = _ENCODERS[sort_keys].encode(obj)
    return msgspec.json.format(raw, indent=2) if pretty else raw


def describe_validation_error(exc: msgspec.ValidationError) -> str:
    """Return a one-line description of a validation error.

    msgspec reports the offending location as a ``- at `$.path``` suffix;
    it is moved to the front so messages read ``$.path: problem``.
    """
    message = str(exc).strip()
    match = _AT_PATH.search(message)
    if match is None:
        return message
    return f"{match.group('path')}: {message[: match.start()]}"


__all__ = [
    "StructBaseCompat",
    "StructBaseHotPath",
    "StructBaseStrict",
    "describe_validation_error",
    "encode_json",
]
