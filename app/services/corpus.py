"""Merge the text of several uploaded documents into one summarization corpus."""

from typing import Iterable


def document_header(name: str) -> str:
    return f"\n\n=== {name} ===\n\n"


def aggregate(documents: Iterable[tuple[str, str]]) -> str:
    """
    Concatenate ``(name, text)`` pairs in the order given.

    Each document's text is preceded by a ``=== name ===`` header so the model
    can tell where one file ends and the next begins.
    """
    return "".join(f"{document_header(name)}{text}" for name, text in documents)
