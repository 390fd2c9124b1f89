"""
Source patches — apply rewrite rules to a freshly cloned checkout.

Two rule kinds exist (see ``core.models.artifact``):

    substitute         regex find/replace, applied line by line
    replace_function   rewrite a function body to ``return <literal>``

Every rule must change something.  A missing file, a pattern with no
match, or a function that cannot be found raises PatchFailed so the
build never starts on an unpatched tree.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path

from mmsetup.core.errors import PatchFailed
from mmsetup.core.models.artifact import (
    FunctionBodyReplacement,
    LineSubstitution,
    PatchRule,
)

logger = logging.getLogger(__name__)


def apply_patches(
    checkout: Path,
    rules: Sequence[PatchRule],
    *,
    artifact: str | None = None,
) -> int:
    """Apply ``rules`` in order.  Returns the total number of edits.

    Stops at the first failing rule; later rules are not applied.
    """
    total = 0
    for rule in rules:
        total += apply_rule(checkout, rule, artifact=artifact)
    return total


def apply_rule(checkout: Path, rule: PatchRule, *, artifact: str | None = None) -> int:
    """Apply one rule to its file inside ``checkout``."""
    target = checkout / rule.path
    if not target.is_file():
        raise PatchFailed(f"{rule.describe()}: file not found: {target}", artifact=artifact)

    try:
        text = _read(target)
        if isinstance(rule, LineSubstitution):
            patched, count = substitute_lines(text, rule.pattern, rule.replacement)
        elif isinstance(rule, FunctionBodyReplacement):
            patched, count = replace_function_body(text, rule.function, rule.returns)
        else:
            raise PatchFailed(f"unknown patch rule: {rule!r}", artifact=artifact)
        _write(target, patched)
    except (OSError, ValueError) as e:
        # UnicodeDecodeError is a ValueError
        raise PatchFailed(f"{rule.describe()}: {e}", artifact=artifact) from e

    logger.info("Patched %s (%s, %d edit(s))", target, rule.kind, count)
    return count


def substitute_lines(text: str, pattern: str, replacement: str) -> tuple[str, int]:
    """Regex-substitute within each line, keeping line endings intact.

    Raises:
        ValueError: If the pattern matches nowhere.
    """
    compiled = re.compile(pattern)
    out: list[str] = []
    count = 0
    for line in text.splitlines(keepends=True):
        body = line.rstrip("\r\n")
        ending = line[len(body):]
        new_body, n = compiled.subn(replacement, body)
        count += n
        out.append(new_body + ending)

    if count == 0:
        raise ValueError("pattern did not match")
    return "".join(out), count


def replace_function_body(text: str, function: str, returns: str) -> tuple[str, int]:
    """Replace the body of ``def <function>(...):`` with a fixed return.

    The body is every line after the declaration that is blank or
    indented deeper than the ``def``.  Trailing blank lines are kept so
    spacing to the next statement does not change.

    Raises:
        ValueError: If the declaration is missing or has no body.
    """
    lines = text.splitlines(keepends=True)
    decl = re.compile(rf"^(\s*)def {re.escape(function)}\s*\(.*\)\s*(->.*)?:\s*$")

    start = None
    indent = ""
    for i, line in enumerate(lines):
        match = decl.match(line.rstrip("\r\n"))
        if match:
            start, indent = i, match.group(1)
            break
    if start is None:
        raise ValueError(f"function {function}() not found")

    end = start + 1
    while end < len(lines):
        line = lines[end]
        if line.strip() and _indent_width(line) <= len(indent):
            break
        end += 1

    # Give trailing blank lines back to whatever follows the function.
    body_end = end
    while body_end > start + 1 and not lines[body_end - 1].strip():
        body_end -= 1
    body = lines[start + 1:body_end]
    if not body:
        raise ValueError(f"function {function}() has no body")

    body_indent = next(
        line[: _indent_width(line)] for line in body if line.strip()
    )
    ending = "\r\n" if lines[start].endswith("\r\n") else "\n"
    replacement = f"{body_indent}return {returns!r}{ending}"

    patched = lines[: start + 1] + [replacement] + lines[body_end:]
    return "".join(patched), 1


def _indent_width(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def _read(path: Path) -> str:
    with path.open(encoding="utf-8", newline="") as fh:
        return fh.read()


def _write(path: Path, text: str) -> None:
    with path.open("w", encoding="utf-8", newline="") as fh:
        fh.write(text)
