"""knc.utils — Small parsing helpers shared by flags and commands."""

from __future__ import annotations

from knc.errors import ValidationError


def split_pair(pair: str, delimiter: str = "=") -> tuple[str, str]:
    """Split "key=value" into its two halves.

    Exactly one delimiter is allowed and both halves must be non-empty.

    >>> split_pair("echo-v1=90")
    ('echo-v1', '90')
    """
    parts = pair.split(delimiter)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValidationError(
            f"expecting the value format in value1{delimiter}value2, given {pair}"
        )
    return parts[0], parts[1]


def split_list(values: list[str] | tuple[str, ...], separator: str = ",") -> list[str]:
    """Flatten repeatable, comma-separable flag values.

    >>> split_list(["a,b", "c"])
    ['a', 'b', 'c']
    """
    result: list[str] = []
    for value in values:
        result.extend(v.strip() for v in value.split(separator) if v.strip())
    return result


def map_from_array(
    pairs: list[str],
    delimiter: str = "=",
    allow_singles: bool = False,
) -> dict[str, str]:
    """Convert ["k=v", ...] into a dict, rejecting empty and duplicate keys.

    With allow_singles, a bare "k" maps to an empty value.
    """
    result: dict[str, str] = {}
    for pair in pairs:
        parts = pair.split(delimiter, 1)
        if len(parts) == 1:
            if not allow_singles:
                raise ValidationError(
                    f'argument requires a value that contains the "{delimiter}" '
                    f'character; got "{pair}"'
                )
            result[parts[0]] = ""
            continue
        key, value = parts
        if not key:
            raise ValidationError("the key is empty")
        if key in result:
            raise ValidationError(f'the key "{key}" has been duplicated in {pairs}')
        result[key] = value
    return result


def ordered_map_and_removal_list(
    pairs: list[str],
    delimiter: str = "=",
) -> tuple[dict[str, str], list[str]]:
    """Split ["k=v", "old-"] into an ordered update dict and a removal list.

    A trailing "-" without a delimiter marks a key for removal. Later
    assignments to the same key win.
    """
    updates: dict[str, str] = {}
    removals: list[str] = []
    for pair in pairs:
        parts = pair.split(delimiter, 1)
        if len(parts) == 2:
            updates[parts[0]] = parts[1]
        elif pair.endswith("-") and len(pair) > 1:
            removals.append(pair[:-1])
        else:
            raise ValidationError(
                f'argument requires a value that contains the "{delimiter}" '
                f'character; got "{pair}"'
            )
    return updates, removals
