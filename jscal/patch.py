# jscal
# Copyright (C) 2026 Jelmer Vernooĳ <jelmer@jelmer.uk>, et al.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; version 3
# of the License or (at your option) any later version of
# the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston,
# MA  02110-1301, USA.

"""PatchObject support (RFC 8984, section 1.4.9).

A patch maps JSON-pointer-like paths to replacement values. A value of
``None`` removes the member at that path.
"""

import collections
import copy
import logging

logger = logging.getLogger(__name__)

OP_SET = "set"
OP_DELETE = "delete"


class PatchError(ValueError):
    """A patch could not be applied."""

    def __init__(self, pointer, message) -> None:
        super().__init__(f"{pointer}: {message}")
        self.pointer = pointer
        self.message = message


PatchOperation = collections.namedtuple(
    "PatchOperation", ["pointer", "path", "op", "value"]
)


def _unescape(segment):
    return segment.replace("~1", "/").replace("~0", "~")


def parse_pointer(pointer: str) -> tuple[str, ...]:
    """Split a patch pointer into its unescaped path segments."""
    if not isinstance(pointer, str) or pointer in ("", "/"):
        raise PatchError(pointer, "empty pointer")
    if pointer.startswith("/"):
        pointer = pointer[1:]
    return tuple(_unescape(segment) for segment in pointer.split("/"))


def parse_patch(patch: dict) -> list[PatchOperation]:
    """Parse a PatchObject into operations.

    Raises:
      PatchError: if a pointer is malformed, or if one pointer is a prefix of
        another
    """
    operations = []
    for pointer, value in patch.items():
        path = parse_pointer(pointer)
        if value is None:
            operations.append(PatchOperation(pointer, path, OP_DELETE, None))
        else:
            operations.append(PatchOperation(pointer, path, OP_SET, value))
    for op in operations:
        for other in operations:
            if other is op or len(other.path) <= len(op.path):
                continue
            if other.path[: len(op.path)] == op.path:
                raise PatchError(
                    other.pointer, f"conflicts with patch of {op.pointer}"
                )
    return operations


def _apply_operation(target, operation):
    current = target
    for i, segment in enumerate(operation.path[:-1]):
        try:
            current = current[segment]
        except KeyError as exc:
            raise PatchError(
                operation.pointer,
                "missing member " + "/".join(operation.path[: i + 1]),
            ) from exc
        if not isinstance(current, dict):
            raise PatchError(
                operation.pointer,
                "can not traverse into " + "/".join(operation.path[: i + 1]),
            )
    name = operation.path[-1]
    if operation.op == OP_DELETE:
        current.pop(name, None)
    else:
        current[name] = copy.deepcopy(operation.value)


def apply_patch(base: dict, patch: dict) -> dict:
    """Apply a PatchObject to a copy of base.

    Args:
      base: Object to patch; not modified
      patch: Mapping of pointers to values
    Raises:
      PatchError: if the patch is invalid or does not fit base
    Returns: patched copy of base
    """
    operations = parse_patch(patch)
    ret = copy.deepcopy(base)
    for operation in operations:
        _apply_operation(ret, operation)
    logger.debug("Applied %d patch operations", len(operations))
    return ret
