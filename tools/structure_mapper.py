"""
structure_mapper.py - Environment tying a byte source to mapped classes

A StructureMapper owns the byte reader, the layout catalog and the
configuration. Mapped instances are decoded through it, and it is the
object injected into ContextField(StructureMapper) attributes.

Usage:
    from structure_mapper import StructureMapper

    mapper = StructureMapper(data, catalog)
    header = mapper.read_structure(Header, 0)
    session = mapper.markup(header)
"""

import logging
from typing import Optional

from byte_reader import ByteReader
from layout_catalog import Layout, LayoutCatalog
from mapping_config import MapperConfig
from mapping_errors import LayoutSynthesisError
from markup_session import MarkupSession
import struct_mapping
from struct_mapping import DecodeContext, TypeSchema

logger = logging.getLogger(__name__)


class StructureMapper:
    """Decodes mapped classes from one byte source."""

    def __init__(self, data, catalog: LayoutCatalog = None, config: MapperConfig = None):
        self.config = config or MapperConfig()
        self.catalog = catalog if catalog is not None else LayoutCatalog(self.config.byte_order)
        if isinstance(data, ByteReader):
            self.reader = data
        else:
            self.reader = ByteReader(data, self.config.byte_order, self.config.string_encoding)

    def structure_layout(self, name: str) -> Optional[Layout]:
        """Fixed layout for a structure name; synthesized layouts don't count."""
        layout = self.catalog.get(name)
        if layout is None or layout.category == self.config.variable_length_category:
            return None
        return layout

    def schema_for(self, cls) -> TypeSchema:
        layout = self.structure_layout(struct_mapping.structure_name_for(cls))
        return struct_mapping.schema_for(cls, layout)

    def is_mapped(self, obj) -> bool:
        return struct_mapping.is_mapped_class(type(obj))

    def create_context(self, cls, offset: int = None) -> DecodeContext:
        schema = self.schema_for(cls)
        start = self.reader.position if offset is None else offset
        return DecodeContext(self, schema, start)

    def read_structure_context(self, cls, offset: int = None) -> DecodeContext:
        """Decode an instance of cls at offset (default: the cursor)."""
        context = self.create_context(cls, offset)
        struct_mapping.decode(context)
        return context

    def read_structure(self, cls, offset: int = None):
        return self.read_structure_context(cls, offset).instance

    def recover_context(self, obj) -> Optional[DecodeContext]:
        if isinstance(obj, DecodeContext):
            return obj
        if not self.is_mapped(obj):
            return None
        return self.schema_for(type(obj)).recover_context(obj)

    def synthesize_layout(self, context: DecodeContext) -> Layout:
        """Create (and register, if configured) the layout of a variable-length instance."""
        layout = struct_mapping.synthesize_layout(context)
        logger.debug("synthesized layout %s (%d bytes) for %s",
                     layout.name, layout.length, context.schema.description)
        if self.config.register_synthesized:
            layout = self.catalog.register(layout, self.config.variable_length_category)
        return layout

    def layout_for(self, obj) -> Layout:
        """Fixed layout of an instance's class, or one synthesized from its context."""
        context = self.recover_context(obj)
        if context is not None:
            schema = context.schema
        elif self.is_mapped(obj):
            schema = self.schema_for(type(obj))
        else:
            raise LayoutSynthesisError(f"{type(obj).__name__} is not a mapped structure")

        if schema.layout is not None:
            return schema.layout
        if context is None:
            raise LayoutSynthesisError(
                f"{schema.description} is variable length but has no captured context")
        return self.synthesize_layout(context)

    def run_markup(self, context: DecodeContext, session: MarkupSession) -> int:
        return struct_mapping.run_markup(context, session)

    def markup(self, obj, session: MarkupSession = None) -> MarkupSession:
        """Mark up a decoded instance (or its DecodeContext) into a session."""
        session = session or MarkupSession(self)
        session.markup(obj)
        return session
