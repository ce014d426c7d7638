"""
field_functions.py - Default read, output and markup strategies

Strategies are plain callables:

    read:    fn(field_context) -> value
    output:  fn(context, builder, output_descriptor) -> None
    markup:  fn(field_context, session) -> None     (field level)
             fn(context, session) -> None           (structure level)

A FieldMapping's read strategy is chosen from its value type and data
type; custom ones are passed as FieldMapping(read_func=...).
"""

from typing import Callable, Optional

import struct_mapping
from byte_reader import PrimitiveKind, primitive_info
from layout_catalog import ARRAY_RE
from mapping_errors import DecodeError, LayoutSynthesisError, MarkupError
from markup_session import CommentKind

INTEGER_KINDS = (PrimitiveKind.UNSIGNED, PrimitiveKind.SIGNED)


def default_read_func(value_type, data_type: Optional[str]) -> Optional[Callable]:
    """Pick a read strategy, or None when nothing fits."""
    mapped = struct_mapping.is_mapped_class(value_type)
    if data_type is None:
        return read_nested if mapped else None

    m = ARRAY_RE.match(data_type)
    if m:
        if mapped:
            return read_nested_array
        return read_primitive_array if primitive_info(m.group('elem')) else None

    info = primitive_info(data_type)
    if info is not None:
        if mapped:
            return read_pointer if info[0] in INTEGER_KINDS else None
        return read_primitive

    # data type names another layout
    return read_nested if mapped else None


# =============================================================================
# Read strategies
# =============================================================================

def read_primitive(fctx):
    length = fctx.length
    return fctx.reader.read_next_value(fctx.data_type, length or -1, fctx.signed)


def read_primitive_array(fctx):
    m = ARRAY_RE.match(fctx.data_type or '')
    if not m:
        raise DecodeError(f"Field {fctx.field.name} is not an array", fctx.offset)
    elem = m.group('elem')
    info = primitive_info(elem)
    if info is None or info[1] is None:
        raise DecodeError(f"Array element type '{elem}' has no fixed size", fctx.offset)
    reader = fctx.reader
    return [reader.read_next_value(elem, -1, fctx.signed) for _ in range(int(m.group('count')))]


def read_nested(fctx):
    return fctx.mapper.read_structure(fctx.field.value_type, fctx.offset)


def read_nested_array(fctx):
    m = ARRAY_RE.match(fctx.data_type or '')
    if not m:
        raise DecodeError(f"Field {fctx.field.name} needs an array data type", fctx.offset)
    items = []
    pos = fctx.offset
    for _ in range(int(m.group('count'))):
        nested = fctx.mapper.read_structure_context(fctx.field.value_type, pos)
        items.append(nested.instance)
        pos = nested.end
    fctx.reader.position = pos
    return items


def read_pointer(fctx):
    """Read an offset and decode the structure it points at (0 -> None)."""
    reader = fctx.reader
    target = reader.read_next_value(fctx.data_type, -1, False)
    if target == 0:
        return None
    saved = reader.position
    try:
        return fctx.mapper.read_structure(fctx.field.value_type, target)
    finally:
        reader.position = saved


# =============================================================================
# Output strategies
# =============================================================================

def output_default(context, builder, ofd) -> None:
    value = ofd.get_value(context.instance)
    mapper = context.mapper

    if ofd.data_type:
        data_type = ofd.data_type
        if isinstance(value, (list, tuple)) and not ARRAY_RE.match(data_type):
            data_type = f"{data_type}[{len(value)}]"
        size = mapper.catalog.type_size(data_type)
        if size is None:
            size = _value_size(ofd.name, data_type, value, mapper.config.string_encoding)
        builder.append(data_type, size, ofd.name, offset=ofd.offset)
        return

    if isinstance(value, (list, tuple)):
        _output_structure_array(mapper, builder, ofd, value)
    elif mapper.is_mapped(value):
        layout = mapper.layout_for(value)
        builder.append(layout.name, layout.length, ofd.name, offset=ofd.offset)
    elif isinstance(value, (bytes, bytearray)):
        builder.append('bytes', len(value), ofd.name, offset=ofd.offset)
    elif isinstance(value, str):
        size = len(value.encode(mapper.config.string_encoding))
        builder.append('utf8', size, ofd.name, offset=ofd.offset)
    else:
        raise LayoutSynthesisError(
            f"No data type for output field {ofd.name} ({type(value).__name__})")


def _value_size(name: str, data_type: str, value, encoding: str) -> int:
    if isinstance(value, (bytes, bytearray)):
        return len(value)
    if isinstance(value, str):
        size = len(value.encode('ascii' if data_type == 'ascii' else encoding))
        return size + 1 if data_type == 'cstring' else size
    raise LayoutSynthesisError(f"Cannot size output field {name} of type '{data_type}'")


def _output_structure_array(mapper, builder, ofd, items) -> None:
    if not items:
        return
    layouts = [mapper.layout_for(item) for item in items]
    names = {lt.name for lt in layouts}
    if len(names) != 1:
        raise LayoutSynthesisError(
            f"Output field {ofd.name} mixes element layouts: {', '.join(sorted(names))}")
    builder.append(f"{layouts[0].name}[{len(items)}]", sum(lt.length for lt in layouts),
                   ofd.name, offset=ofd.offset)


# =============================================================================
# Markup strategies
# =============================================================================

def field_markup_funcs(decl) -> tuple:
    """Field-level markup strategies for a FieldMapping declaration."""
    funcs = []
    if decl.markup:
        funcs.append(markup_nested)
    if decl.comment is not None:
        funcs.append(comment_markup(decl.comment))
    if decl.reference:
        funcs.append(markup_reference)
    funcs.extend(decl.markup_funcs)
    return tuple(funcs)


def markup_nested(fctx, session) -> None:
    session.markup(fctx.value)


def comment_markup(kind) -> Callable:
    kind = CommentKind(kind)

    def add_comment(fctx, session):
        value = fctx.value
        if value is None:
            return
        if fctx.offset is None:
            raise MarkupError(f"No offset recorded for field {fctx.field.name}")
        text = ', '.join(str(v) for v in value) if isinstance(value, (list, tuple)) else str(value)
        session.append_comment(fctx.offset, kind, text)

    return add_comment


def markup_reference(fctx, session) -> None:
    """Cross reference from the field to the offset its value designates."""
    value = fctx.value
    if value is None or value == 0:
        return
    if fctx.offset is None:
        raise MarkupError(f"No offset recorded for field {fctx.field.name}")
    if isinstance(value, int) and not isinstance(value, bool):
        target = value
    else:
        nested = fctx.mapper.recover_context(value)
        if nested is None:
            raise MarkupError(f"Cannot locate {type(value).__name__} referenced by {fctx.field.name}")
        target = nested.start
    session.add_reference(fctx.offset, target, fctx.field.name)


def markup_getter_func(name: str) -> Callable:
    def markup_value(context, session):
        session.markup(getattr(context.instance, name)())
    return markup_value


def plate_comment_func(name: str) -> Callable:
    def add_plate_comment(context, session):
        value = getattr(context.instance, name)
        if callable(value):
            value = value()
        if value is not None:
            session.append_comment(context.start, CommentKind.PLATE, str(value))
    return add_plate_comment
