"""
text_match.py - Regex Matching Tools

Provides pattern compilation, replacement templates and filename checks
"""

from dataclasses import dataclass
from typing import Optional, List, Tuple, Union
import os
import re

from .models_fs import MatchResult


# $$ | ${ref} | $digits | $identifier
_TEMPLATE_REF = re.compile(r"\$(?:(\$)|\{([^{}]*)\}|(\d+)|([A-Za-z_][A-Za-z0-9_]*))")


@dataclass(frozen=True)
class CompiledPattern:
    """Result of compiling a pattern: a regex, an empty matcher, or an error"""
    regex: Optional["re.Pattern[str]"] = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def is_empty(self) -> bool:
        """Empty pattern: never matches"""
        return self.regex is None and self.error is None


@dataclass(frozen=True)
class GroupRef:
    """Reference to a capture group inside a replacement template"""
    key: Union[int, str]
    literal: str                    # Text as written, used when the group is unknown


@dataclass(frozen=True)
class ReplacementTemplate:
    """Parsed replacement template"""
    parts: Tuple[Union[str, GroupRef], ...] = ()

    def expand(self, match: "re.Match[str]") -> str:
        """
        Expand the template for one match

        Unknown groups are kept literally; groups that did not take part
        in the match expand to an empty string.
        """
        known_names = match.re.groupindex
        group_count = match.re.groups
        out: List[str] = []
        for part in self.parts:
            if isinstance(part, str):
                out.append(part)
                continue
            key = part.key
            if isinstance(key, int):
                exists = key <= group_count
            else:
                exists = key in known_names
            if not exists:
                out.append(part.literal)
                continue
            out.append(match.group(key) or "")
        return "".join(out)


def compile_pattern(pattern: str, ignore_case: bool = False) -> CompiledPattern:
    """
    Compile a regex pattern

    Args:
        pattern: Raw pattern text (may be invalid)
        ignore_case: Whether case-insensitive

    Returns:
        CompiledPattern, never raises
    """
    if not pattern:
        return CompiledPattern()

    flags = re.IGNORECASE if ignore_case else 0
    try:
        return CompiledPattern(regex=re.compile(pattern, flags))
    except re.error as e:
        return CompiledPattern(error=str(e))


def parse_template(template: str) -> ReplacementTemplate:
    """
    Parse a replacement template

    Supports $1, ${1}, $name, ${name} and $$ (literal dollar sign).
    Any other text is copied as-is.
    """
    parts: List[Union[str, GroupRef]] = []
    pos = 0
    for m in _TEMPLATE_REF.finditer(template):
        if m.start() > pos:
            parts.append(template[pos:m.start()])
        dollar, braced, number, name = m.groups()
        if dollar:
            parts.append("$")
        elif braced is not None:
            if braced.isdigit():
                parts.append(GroupRef(int(braced), m.group(0)))
            elif braced:
                parts.append(GroupRef(braced, m.group(0)))
            else:
                parts.append(m.group(0))
        elif number is not None:
            parts.append(GroupRef(int(number), m.group(0)))
        else:
            parts.append(GroupRef(name, m.group(0)))
        pos = m.end()
    if pos < len(template):
        parts.append(template[pos:])
    return ReplacementTemplate(tuple(parts))


def _replace_all(text: str, regex: "re.Pattern[str]", template: ReplacementTemplate) -> str:
    """Replace every match, skipping an empty match right after the previous one"""
    out: List[str] = []
    pos = 0
    last_end = None
    for m in regex.finditer(text):
        if m.start() == m.end() == last_end:
            continue
        out.append(text[pos:m.start()])
        out.append(template.expand(m))
        pos = last_end = m.end()
    out.append(text[pos:])
    return "".join(out)


def replace_text(
    text: str,
    compiled: CompiledPattern,
    template: ReplacementTemplate,
    global_: bool = False
) -> Tuple[str, MatchResult]:
    """
    Apply a compiled pattern to text

    Args:
        text: Original text
        compiled: Compiled pattern
        template: Parsed replacement template
        global_: Replace all matches instead of the first

    Returns:
        (new text, match result)
    """
    if compiled.is_error:
        return text, MatchResult.INVALID_PATTERN
    if compiled.regex is None or compiled.regex.search(text) is None:
        return text, MatchResult.NO_MATCH

    if global_:
        replaced = _replace_all(text, compiled.regex, template)
    else:
        replaced = compiled.regex.sub(template.expand, text, count=1)
    if replaced == text:
        return text, MatchResult.UNCHANGED
    return replaced, MatchResult.REPLACED


def is_valid_filename(name: str) -> Tuple[bool, Optional[str]]:
    """
    Check if a computed basename can be used as a filename

    Args:
        name: Filename

    Returns:
        (is_valid, error_reason)
    """
    if not name:
        return False, "Filename cannot be empty"

    if name in (".", ".."):
        return False, f"Filename cannot be '{name}'"

    separators = {"/", os.sep}
    if os.altsep:
        separators.add(os.altsep)
    for sep in separators:
        if sep in name:
            return False, f"Filename contains path separator: {sep}"

    if "\x00" in name:
        return False, "Filename contains NUL character"

    return True, None
