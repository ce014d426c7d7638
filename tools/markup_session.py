"""
markup_session.py - Annotation document shared by markup passes

The session is the document that markup strategies write to: comments
keyed by offset and kind, cross references between offsets and the
layouts applied at structure start offsets. Writes happen inside
transaction(), which serializes concurrent markup passes.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from mapping_errors import LayoutSynthesisError, MarkupError

logger = logging.getLogger(__name__)


class CommentKind(Enum):
    PLATE = 'plate'
    PRE = 'pre'
    EOL = 'eol'
    POST = 'post'


@dataclass(frozen=True)
class Reference:
    from_offset: int
    to_offset: int
    label: Optional[str] = None


class MarkupSession:
    """
    Collects annotations for one document.

    Args:
        mapper: StructureMapper used to locate and lay out marked up instances
        separator: Joins comments appended at the same offset and kind
    """

    def __init__(self, mapper=None, separator: str = None):
        self.mapper = mapper
        if separator is None:
            separator = mapper.config.comment_separator if mapper is not None else '\n'
        self.separator = separator
        self.comments: Dict[Tuple[int, CommentKind], str] = {}
        self.references: List[Reference] = []
        self.applied_layouts: Dict[int, str] = {}
        self.diagnostics: List[MarkupError] = []
        self._marked = {}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self):
        with self._lock:
            yield self

    def append_comment(self, offset: int, kind: CommentKind, text: str) -> None:
        """Append text to the comment at offset; repeated text is not duplicated."""
        if offset is None:
            raise MarkupError("Comment needs an offset")
        if not text:
            return
        with self._lock:
            key = (offset, CommentKind(kind))
            existing = self.comments.get(key)
            if existing is None:
                self.comments[key] = text
            elif text not in existing.split(self.separator):
                self.comments[key] = existing + self.separator + text

    def comment_at(self, offset: int, kind: CommentKind) -> Optional[str]:
        return self.comments.get((offset, CommentKind(kind)))

    def add_reference(self, from_offset: int, to_offset: int, label: str = None) -> Reference:
        ref = Reference(from_offset, to_offset, label)
        with self._lock:
            if ref not in self.references:
                self.references.append(ref)
        return ref

    def references_from(self, offset: int) -> List[Reference]:
        return [r for r in self.references if r.from_offset == offset]

    def apply_layout(self, offset: int, layout) -> None:
        with self._lock:
            current = self.applied_layouts.get(offset)
            if current is not None and current != layout.name:
                raise MarkupError(
                    f"Offset 0x{offset:x} already holds {current}, cannot apply {layout.name}")
            self.applied_layouts[offset] = layout.name

    def record_failure(self, error: MarkupError) -> None:
        with self._lock:
            self.diagnostics.append(error)

    def markup(self, obj) -> None:
        """
        Mark up a decoded structure instance (or a list of them).

        Each instance is marked up at most once per session; the instance
        must have captured its DecodeContext in a context field.
        """
        if obj is None:
            return
        if isinstance(obj, (list, tuple)):
            for item in obj:
                self.markup(item)
            return
        if self.mapper is None:
            raise MarkupError("Session has no mapper to locate structures")

        context = self.mapper.recover_context(obj)
        if context is None:
            raise MarkupError(f"No structure context captured by {type(obj).__name__}")

        with self._lock:
            if id(obj) in self._marked:
                return
            # keep a reference so the id stays unique for the session
            self._marked[id(obj)] = obj

            try:
                self.apply_layout(context.start, self.mapper.layout_for(context))
            except (LayoutSynthesisError, MarkupError) as e:
                logger.warning("cannot lay out %s: %s", context.schema.description, e)
                self.record_failure(e if isinstance(e, MarkupError) else MarkupError(str(e)))
            self.mapper.run_markup(context, self)
