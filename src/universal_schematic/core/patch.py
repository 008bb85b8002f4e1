from collections.abc import Iterable

from universal_schematic.models import EditSpan


class OverlappingEditsError(ValueError):
    """Raised when an edit set cannot be applied without corrupting text."""


def _ordered(spans: Iterable[EditSpan], length: int) -> list[EditSpan]:
    """Sort spans by position and reject out-of-range or overlapping ones."""
    ordered = sorted(spans, key=lambda span: (span.start, span.end))
    previous: EditSpan | None = None
    for span in ordered:
        if span.end > length:
            raise OverlappingEditsError(f"Edit span [{span.start}, {span.end}) exceeds text length {length}")
        if previous is not None and previous.end > span.start:
            raise OverlappingEditsError(
                f"Edit spans [{previous.start}, {previous.end}) and [{span.start}, {span.end}) overlap"
            )
        previous = span
    return ordered


def apply_edits(text: str, spans: Iterable[EditSpan]) -> str:
    """Splice ``spans`` into ``text`` from the highest offset down.

    Every span still to be applied lies before the one being applied, so its
    offsets stay valid against the partially edited text.
    """
    for span in reversed(_ordered(spans, len(text))):
        text = text[: span.start] + span.replacement + text[span.end :]
    return text


def splice_edits(text: str, spans: Iterable[EditSpan]) -> str:
    """Build the edited text in a single left-to-right pass."""
    parts: list[str] = []
    cursor = 0
    for span in _ordered(spans, len(text)):
        parts.append(text[cursor : span.start])
        parts.append(span.replacement)
        cursor = span.end
    parts.append(text[cursor:])
    return "".join(parts)
