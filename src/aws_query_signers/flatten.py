# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Flattening of nested request parameters into the AWS query naming convention.

Nested mappings are joined with dots and list members are addressed with a
1-based index, so ``{"Destination": {"ToAddresses": ["a@example.com"]}}`` becomes
``{"Destination.ToAddresses.1": "a@example.com"}``.
"""

from collections.abc import Mapping, Sequence
from typing import Any, TypeAlias
from urllib.parse import urlencode

from .exceptions import EncodingError

ParamValue: TypeAlias = (
    "str | int | float | bool | None | Mapping[str, ParamValue] | Sequence[ParamValue]"
)
Params: TypeAlias = Mapping[str, ParamValue]


def flatten_params(params: Params, prefix: str = "") -> dict[str, str]:
    """Flatten ``params`` into an ordered map of query parameter names to values.

    Keys keep the insertion order of the input. A flattened name produced twice is
    overwritten by the later value. ``None`` values are treated as absent and
    dropped from the result.

    :param params: The nested parameter structure.
    :param prefix: The flattened name of the enclosing structure, if any.
    """
    flat: dict[str, str] = {}
    for key, value in params.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        _flatten_value(flat, name, value)
    return flat


def _flatten_value(flat: dict[str, str], name: str, value: Any) -> None:
    match value:
        case None:
            return
        case bool():
            flat[name] = "true" if value else "false"
        case bytes() | bytearray():
            try:
                flat[name] = bytes(value).decode("utf-8")
            except UnicodeDecodeError as e:
                raise EncodingError(f"Parameter {name} is not valid UTF-8.") from e
        case str():
            try:
                name.encode("utf-8")
                value.encode("utf-8")
            except UnicodeEncodeError as e:
                raise EncodingError(
                    f"Parameter {name!r} is not representable as UTF-8."
                ) from e
            flat[name] = value
        case float() if value.is_integer():
            # 1.0 is sent as "1", the way a JSON number serializes it
            flat[name] = str(int(value))
        case int() | float():
            flat[name] = str(value)
        case Mapping():
            flat.update(flatten_params(value, name))
        case Sequence():
            for index, item in enumerate(value, start=1):
                _flatten_value(flat, f"{name}.{index}", item)
        case _:
            flat[name] = str(value)


def encode_form(flat: Mapping[str, str]) -> str:
    """Encode a flattened parameter map as an ``application/x-www-form-urlencoded``
    body."""
    return urlencode(list(flat.items()))
