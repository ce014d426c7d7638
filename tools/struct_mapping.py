#!/usr/bin/env python3
"""
struct_mapping.py - Declarative structure mapping engine

Maps binary structures onto Python classes. A mapped class declares, per
attribute, how the value is obtained from the structure's layout; the
engine builds a TypeSchema for the class once, then uses it to decode
instances, to synthesize layouts for variable-length records and to run
the (separate, best-effort) markup pass.

Declaring a mapped class:

    @structure_mapping('Header')
    class Header:
        magic = FieldMapping()
        count = FieldMapping(signedness=Signedness.UNSIGNED)
        name = FieldMapping('name_offset', value_type=NameRecord)
        context = ContextField(DecodeContext)

        @after_structure_read
        def validate(self):
            if self.magic != 0x464c457f:
                raise ValueError("bad magic")

Fixed layouts come from the mapper's LayoutCatalog (looked up by the
structure name) and bind fields eagerly by name. Classes without a fixed
layout bind late, reading declared data types sequentially. Classes
deriving from StructureReader read themselves.

Decode pipeline, per instance:

    schema_for() -> construct -> read fields / self-read
                 -> inject context fields -> @after_structure_read hooks
"""

import inspect
import logging
from abc import ABC, abstractmethod
from collections import Counter, OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

import field_functions
from layout_catalog import ROOT_CATEGORY, Layout, LayoutComponent, is_valid_layout_name
from mapping_errors import (
    DecodeError, LayoutSynthesisError, MappingError, MarkupError, SchemaError,
    UnsupportedContextField,
)

logger = logging.getLogger(__name__)

MAPPING_ATTR = '__structure_mapping__'
AFTER_READ_ATTR = '__after_structure_read__'
MARKUP_GETTER_ATTR = '__markup_getter__'


class Binding(Enum):
    EAGER = 'eager'
    LATE = 'late'


class Signedness(Enum):
    UNSPECIFIED = 'unspecified'
    SIGNED = 'signed'
    UNSIGNED = 'unsigned'


class SchemaKind(Enum):
    MAPPED = 'mapped'
    SELF_READING = 'self_reading'


class Construction(Enum):
    CONTEXT = 'context'
    NO_ARGS = 'no_args'


# =============================================================================
# Declarations
# =============================================================================

@dataclass(frozen=True)
class StructureMappingInfo:
    structure_name: str
    plate_comment: Optional[str] = None


def structure_mapping(structure_name: str = None, plate_comment: str = None):
    """
    Class decorator marking a class as structure mapped.

    Args:
        structure_name: Layout name in the catalog (defaults to the class name)
        plate_comment: Attribute or method whose value becomes a plate
            comment at the structure start; '__str__' uses str(instance)
    """
    def wrap(cls):
        setattr(cls, MAPPING_ATTR,
                StructureMappingInfo(structure_name or cls.__name__, plate_comment))
        return cls
    return wrap


def after_structure_read(func):
    """Run this method after all fields and context fields are assigned."""
    setattr(func, AFTER_READ_ATTR, True)
    return func


def markup_getter(func):
    """The value returned by this method is marked up along with the structure."""
    setattr(func, MARKUP_GETTER_ATTR, True)
    return func


class StructureReader(ABC):
    """Base for classes that decode their own bytes."""

    @abstractmethod
    def read_structure(self, context: 'DecodeContext') -> None:
        """Read the structure starting at context.start, leaving the cursor at its end."""


class _Declaration:
    """Class-level declaration whose per-instance value lives in __dict__."""

    def __init__(self, default=None):
        self.name = None
        self.default = default

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance.__dict__.get(self.name, self.default)

    def __set__(self, instance, value):
        instance.__dict__[self.name] = value


class FieldOutput(_Declaration):
    """
    Declares how an attribute is emitted into a synthesized layout.

    Used on its own the attribute is output-only (never read); passed as
    FieldMapping(output=...) the attribute is both read and output.
    """

    def __init__(self, ordinal: int = None, data_type: str = None,
                 variable_length: bool = False, offset: int = -1,
                 output_func: Callable = None, getter: str = None, default=None):
        super().__init__(default)
        self.ordinal = ordinal
        self.data_type = data_type
        self.variable_length = variable_length
        self.offset = offset
        self.output_func = output_func
        self.getter = getter


class FieldMapping(_Declaration):
    """Declares how an attribute is read from the structure."""

    def __init__(self, field_name: str = None, *, data_type: str = None,
                 value_type: type = None,
                 signedness: Signedness = Signedness.UNSPECIFIED,
                 length: int = -1, read_func: Callable = None,
                 markup: bool = False, comment=None, reference: bool = False,
                 markup_funcs: Tuple[Callable, ...] = (),
                 output: FieldOutput = None, default=None):
        super().__init__(default)
        self.field_name = field_name
        self.data_type = data_type
        self.value_type = value_type
        self.signedness = signedness
        self.length = length
        self.read_func = read_func
        self.markup = markup
        self.comment = comment
        self.reference = reference
        self.markup_funcs = tuple(markup_funcs)
        self.output = output


class ContextField(_Declaration):
    """Attribute assigned the mapper or the DecodeContext after decoding."""

    def __init__(self, field_type: type = None):
        super().__init__(None)
        self.field_type = field_type


def is_mapped_class(cls) -> bool:
    return isinstance(cls, type) and MAPPING_ATTR in vars(cls)


def structure_name_for(cls) -> Optional[str]:
    info = vars(cls).get(MAPPING_ATTR) if isinstance(cls, type) else None
    return info.structure_name if info is not None else None


# =============================================================================
# Descriptors
# =============================================================================

@dataclass(frozen=True)
class FieldDescriptor:
    """Immutable read metadata for one mapped attribute."""
    name: str
    field_name: str
    binding: Binding
    component: Optional[LayoutComponent] = None
    data_type: Optional[str] = None
    signedness: Signedness = Signedness.UNSPECIFIED
    length: int = -1
    value_type: Optional[type] = None
    read_func: Optional[Callable] = None
    markup_funcs: Tuple[Callable, ...] = ()

    @property
    def is_eager(self) -> bool:
        return self.binding is Binding.EAGER


@dataclass(frozen=True)
class OutputFieldDescriptor:
    """Immutable layout-synthesis metadata for one output attribute."""
    name: str
    ordinal: int
    output_func: Callable
    data_type: Optional[str] = None
    variable_length: bool = False
    offset: int = -1
    getter: Optional[str] = None
    field: Optional[FieldDescriptor] = None

    def get_value(self, instance):
        if self.getter:
            value = getattr(instance, self.getter)
            return value() if callable(value) else value
        return getattr(instance, self.name)


@dataclass(frozen=True)
class ContextFieldDescriptor:
    name: str
    field_type: Optional[type]


# =============================================================================
# Contexts
# =============================================================================

class DecodeContext:
    """
    State of one structure instance being decoded.

    The end offset only moves forward; once decoding finishes it is
    start + the number of bytes the structure occupies.
    """

    def __init__(self, mapper, schema: 'TypeSchema', start: int):
        self.mapper = mapper
        self.schema = schema
        self.start = start
        self.instance = None
        self.field_offsets: Dict[str, int] = {}
        self._end = start

    @property
    def end(self) -> int:
        return self._end

    @property
    def length(self) -> int:
        return self._end - self.start

    @property
    def reader(self):
        return self.mapper.reader

    @property
    def layout(self) -> Optional[Layout]:
        return self.schema.layout

    def advance(self, offset: int) -> None:
        if offset > self._end:
            self._end = offset

    def field_context(self, fd: FieldDescriptor, offset: int = None,
                      component: LayoutComponent = None) -> 'FieldDecodeContext':
        if offset is None:
            offset = self.field_offsets.get(fd.name)
            if offset is None and fd.component is not None:
                offset = self.start + fd.component.offset
        return FieldDecodeContext(self, fd, offset, component or fd.component)

    def __repr__(self):
        return (f"DecodeContext({self.schema.description}, "
                f"start=0x{self.start:x}, end=0x{self._end:x})")


class FieldDecodeContext:
    """Per-field view handed to read and field-markup strategies."""

    __slots__ = ('context', 'field', 'offset', 'component')

    def __init__(self, context: DecodeContext, fd: FieldDescriptor,
                 offset: Optional[int], component: Optional[LayoutComponent]):
        self.context = context
        self.field = fd
        self.offset = offset
        self.component = component

    @property
    def instance(self):
        return self.context.instance

    @property
    def mapper(self):
        return self.context.mapper

    @property
    def reader(self):
        return self.context.mapper.reader

    @property
    def data_type(self) -> Optional[str]:
        if self.field.data_type:
            return self.field.data_type
        return self.component.data_type if self.component is not None else None

    @property
    def length(self) -> Optional[int]:
        if self.field.length > 0:
            return self.field.length
        return self.component.length if self.component is not None else None

    @property
    def signed(self) -> Optional[bool]:
        if self.field.signedness is Signedness.SIGNED:
            return True
        if self.field.signedness is Signedness.UNSIGNED:
            return False
        return None

    @property
    def value(self):
        return getattr(self.context.instance, self.field.name)


# =============================================================================
# Layout builder
# =============================================================================

class LayoutBuilder:
    """Accumulates components of a layout being synthesized."""

    def __init__(self, name: str, category: str = ROOT_CATEGORY):
        if not is_valid_layout_name(name):
            raise LayoutSynthesisError(f"Invalid layout name: {name!r}")
        self.name = name
        self.category = category
        self._components: List[LayoutComponent] = []
        self._length = 0

    @property
    def length(self) -> int:
        return self._length

    @property
    def components(self) -> Tuple[LayoutComponent, ...]:
        return tuple(self._components)

    def append(self, data_type: str, length: int, name: str = None,
               comment: str = None, offset: int = -1) -> LayoutComponent:
        """Add a component at the end, or at an explicit offset (padding the gap)."""
        if length < 0:
            raise LayoutSynthesisError(f"Negative length for component {name}")
        if offset >= 0:
            if offset < self._length:
                raise LayoutSynthesisError(
                    f"Component {name} at offset {offset} overlaps existing "
                    f"components ending at {self._length}")
            if offset > self._length:
                gap = offset - self._length
                self._add(LayoutComponent(None, self._length, gap, f'undefined[{gap}]'))
        comp = LayoutComponent(name, self._length, length, data_type, comment)
        self._add(comp)
        return comp

    def _add(self, comp: LayoutComponent) -> None:
        self._components.append(comp)
        self._length = comp.end

    def rename(self, name: str) -> None:
        if not is_valid_layout_name(name):
            raise LayoutSynthesisError(f"Invalid layout name: {name!r}")
        self.name = name

    def build(self) -> Layout:
        return Layout(name=self.name, components=tuple(self._components),
                      length=self._length, category=self.category)


# =============================================================================
# Type schema
# =============================================================================

@dataclass(frozen=True)
class TypeSchema:
    """Immutable mapping information for one class (and layout)."""
    target_class: type
    structure_name: str
    kind: SchemaKind
    construction: Construction
    construction_param: Optional[str] = None
    layout: Optional[Layout] = None
    fields: Tuple[FieldDescriptor, ...] = ()
    output_fields: Tuple[OutputFieldDescriptor, ...] = ()
    context_fields: Tuple[ContextFieldDescriptor, ...] = ()
    after_methods: Tuple[str, ...] = ()
    markup_funcs: Tuple[Callable, ...] = field(default=(), compare=False)

    @property
    def description(self) -> str:
        return f"{self.target_class.__name__}-{self.structure_name}"

    @property
    def is_variable_length(self) -> bool:
        return self.layout is None

    @property
    def structure_length(self) -> int:
        if self.layout is None:
            raise SchemaError(f"{self.description} has no fixed layout")
        return self.layout.length

    def create_instance(self, context: DecodeContext):
        cls = self.target_class
        try:
            if self.construction is Construction.CONTEXT:
                return cls(**{self.construction_param: context})
            return cls()
        except MappingError:
            raise
        except Exception as e:
            raise DecodeError(f"Error creating {cls.__name__}: {e}", context.start) from e

    def read_structure(self, context: DecodeContext) -> None:
        """Populate context.instance from the byte source."""
        reader = context.reader
        instance = context.instance

        if self.kind is SchemaKind.SELF_READING:
            reader.position = context.start
            try:
                instance.read_structure(context)
            except MappingError:
                raise
            except Exception as e:
                raise DecodeError(f"Error reading {self.description}: {e}",
                                  context.start) from e
            context.advance(reader.position)
        else:
            for fd in self.fields:
                fctx = self._bind_field(context, fd)
                read_func = fd.read_func
                if read_func is None and not fd.is_eager:
                    read_func = field_functions.default_read_func(fd.value_type, fctx.data_type)
                if read_func is None:
                    raise DecodeError(
                        f"Missing read info for field: {self.description}.{fd.name}")

                reader.position = fctx.offset
                try:
                    value = read_func(fctx)
                except MappingError:
                    raise
                except Exception as e:
                    raise DecodeError(
                        f"Error reading field {self.description}.{fd.name}: {e}",
                        fctx.offset) from e

                setattr(instance, fd.name, value)
                context.field_offsets[fd.name] = fctx.offset
                if fctx.component is not None:
                    context.advance(fctx.offset + fctx.component.length)
                else:
                    context.advance(reader.position)

        if self.layout is not None:
            context.advance(context.start + self.layout.length)
        reader.position = context.end

    def _bind_field(self, context: DecodeContext, fd: FieldDescriptor) -> FieldDecodeContext:
        if fd.is_eager:
            return context.field_context(fd, context.start + fd.component.offset)

        layout = context.mapper.structure_layout(self.structure_name)
        if layout is None:
            return context.field_context(fd, context.end)
        comp = layout.component(fd.field_name)
        if comp is None:
            raise DecodeError(f"Missing structure field: {fd.field_name} in {layout.name}")
        # a registered layout fixes the extent even when fields bind late
        context.advance(context.start + layout.length)
        return context.field_context(fd, context.start + comp.offset, comp)

    def assign_context_fields(self, context: DecodeContext) -> None:
        mapper_type = type(context.mapper)
        context_type = type(context)
        instance = context.instance

        for cf in self.context_fields:
            ftype = cf.field_type
            if isinstance(ftype, type) and issubclass(mapper_type, ftype):
                setattr(instance, cf.name, context.mapper)
            elif isinstance(ftype, type) and issubclass(context_type, ftype):
                setattr(instance, cf.name, context)
            else:
                raise UnsupportedContextField(
                    f"Unsupported context field: {self.target_class.__name__}.{cf.name} ({ftype!r})")

    def run_after_methods(self, context: DecodeContext) -> None:
        instance = context.instance
        for name in self.after_methods:
            try:
                getattr(instance, name)()
            except DecodeError:
                raise
            except Exception as e:
                raise DecodeError(
                    f"After-read hook {self.target_class.__name__}.{name} failed: {e}",
                    context.start) from e

    def recover_context(self, instance) -> Optional[DecodeContext]:
        """Return the DecodeContext captured by a context field, if any."""
        for cf in self.context_fields:
            if isinstance(cf.field_type, type) and issubclass(DecodeContext, cf.field_type):
                value = getattr(instance, cf.name, None)
                if isinstance(value, DecodeContext):
                    return value
        return None

    def create_layout(self, context: DecodeContext) -> Layout:
        """
        Synthesize a layout for a decoded variable-length instance.

        Output fields are appended in ordinal order; each variable-length
        field contributes '_<size>' to the layout name so differently
        sized instances get distinct layouts.
        """
        if self.layout is not None:
            raise LayoutSynthesisError(f"{self.description} has a fixed layout")

        builder = LayoutBuilder(self.structure_name,
                                context.mapper.config.variable_length_category)
        suffix = ''
        for ofd in self.output_fields:
            before = builder.length
            try:
                ofd.output_func(context, builder, ofd)
            except LayoutSynthesisError:
                raise
            except Exception as e:
                raise LayoutSynthesisError(
                    f"Error adding field {self.description}.{ofd.name}: {e}") from e
            delta = builder.length - before
            if ofd.variable_length:
                suffix += f'_{delta}'

        if suffix:
            builder.rename(self.structure_name + suffix)
        return builder.build()

    def run_markup(self, context: DecodeContext, session) -> int:
        """
        Apply field and structure markup; returns the number of failures.

        Failures are logged and recorded in session.diagnostics, never raised.
        """
        failures = 0
        with session.transaction():
            for fd in self.fields:
                for func in fd.markup_funcs:
                    fctx = context.field_context(fd)
                    if not _invoke_markup(func, fctx, session, f"{self.description}.{fd.name}"):
                        failures += 1
            for func in self.markup_funcs:
                if not _invoke_markup(func, context, session, self.description):
                    failures += 1
        return failures


def _invoke_markup(func, ctx, session, where: str) -> bool:
    try:
        func(ctx, session)
        return True
    except Exception as e:
        logger.warning("markup of %s failed: %s", where, e, exc_info=True)
        error = e if isinstance(e, MarkupError) else MarkupError(f"Markup of {where} failed: {e}")
        session.record_failure(error)
        return False


# =============================================================================
# Schema discovery
# =============================================================================

_SCHEMA_CACHE: Dict[Tuple[type, Optional[Layout]], TypeSchema] = {}


def schema_for(cls: type, layout: Layout = None) -> TypeSchema:
    """
    Return the (cached) TypeSchema of a mapped class.

    Concurrent first calls may both build; builds are pure, and the
    first schema published wins.
    """
    key = (cls, layout)
    schema = _SCHEMA_CACHE.get(key)
    if schema is None:
        schema = _SCHEMA_CACHE.setdefault(key, build_schema(cls, layout))
    return schema


def clear_schema_cache() -> None:
    _SCHEMA_CACHE.clear()


def build_schema(cls: type, layout: Layout = None) -> TypeSchema:
    info = vars(cls).get(MAPPING_ATTR) if isinstance(cls, type) else None
    if info is None:
        raise SchemaError(f"Missing @structure_mapping on {getattr(cls, '__name__', cls)}")

    self_reading = issubclass(cls, StructureReader)
    if inspect.isabstract(cls):
        raise SchemaError(
            f"{cls.__name__} has unimplemented abstract methods: {', '.join(sorted(cls.__abstractmethods__))}")
    kind = SchemaKind.SELF_READING if self_reading else SchemaKind.MAPPED
    structure_name = layout.name if layout is not None else info.structure_name
    bind_layout = None if self_reading else layout

    fields: Dict[str, FieldDescriptor] = OrderedDict()
    outputs: Dict[str, OutputFieldDescriptor] = OrderedDict()
    context_fields: Dict[str, ContextFieldDescriptor] = OrderedDict()
    after_methods: List[str] = []
    getters: List[str] = []
    plate_comments: List[str] = []

    # base to derived; redeclared names keep their original position
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        klass_info = vars(klass).get(MAPPING_ATTR)
        if klass_info is not None and klass_info.plate_comment \
                and klass_info.plate_comment not in plate_comments:
            plate_comments.append(klass_info.plate_comment)

        for attr, decl in vars(klass).items():
            if isinstance(decl, FieldMapping):
                fd = _field_descriptor(cls, attr, decl, bind_layout, self_reading)
                fields[attr] = fd
                if decl.output is not None:
                    outputs[attr] = _output_descriptor(attr, decl.output, fd, len(outputs))
            elif isinstance(decl, FieldOutput):
                outputs[attr] = _output_descriptor(attr, decl, None, len(outputs))
            elif isinstance(decl, ContextField):
                ftype = decl.field_type
                if ftype is None:
                    ftype = _annotated_type(klass, attr)
                if ftype is None:
                    raise SchemaError(
                        f"Context field {cls.__name__}.{attr} has no type or type annotation")
                context_fields[attr] = ContextFieldDescriptor(attr, ftype)
            else:
                func = decl.__func__ if isinstance(decl, (staticmethod, classmethod)) else decl
                if getattr(func, AFTER_READ_ATTR, False) and attr not in after_methods:
                    after_methods.append(attr)
                if getattr(func, MARKUP_GETTER_ATTR, False) and attr not in getters:
                    getters.append(attr)

    dupes = [o for o, n in Counter(o.ordinal for o in outputs.values()).items() if n > 1]
    if dupes:
        raise SchemaError(f"Duplicate output ordinals {sorted(dupes)} in {cls.__name__}")

    construction, param = _find_construction(cls)

    markup_funcs = [field_functions.markup_getter_func(name) for name in getters]
    markup_funcs += [field_functions.plate_comment_func(name) for name in plate_comments]

    schema = TypeSchema(
        target_class=cls,
        structure_name=structure_name,
        kind=kind,
        construction=construction,
        construction_param=param,
        layout=layout,
        fields=tuple(fields.values()),
        output_fields=tuple(sorted(outputs.values(), key=lambda o: o.ordinal)),
        context_fields=tuple(context_fields.values()),
        after_methods=tuple(after_methods),
        markup_funcs=tuple(markup_funcs),
    )
    logger.debug("built schema %s: %d fields, %d output fields, %s",
                 schema.description, len(schema.fields), len(schema.output_fields),
                 'fixed' if layout is not None else 'variable length')
    return schema


def _field_descriptor(cls, attr: str, decl: FieldMapping, layout: Optional[Layout],
                      self_reading: bool) -> FieldDescriptor:
    field_name = decl.field_name or attr
    try:
        markup_funcs = field_functions.field_markup_funcs(decl)
    except ValueError as e:
        raise SchemaError(f"Bad markup declaration on {cls.__name__}.{attr}: {e}") from e

    if layout is not None:
        comp = layout.component(field_name)
        if comp is None:
            raise SchemaError(f"Missing structure field: {field_name} in {cls.__name__}")
        read_func = decl.read_func or field_functions.default_read_func(
            decl.value_type, decl.data_type or comp.data_type)
        return FieldDescriptor(
            name=attr, field_name=field_name, binding=Binding.EAGER, component=comp,
            data_type=decl.data_type, signedness=decl.signedness, length=decl.length,
            value_type=decl.value_type, read_func=read_func, markup_funcs=markup_funcs)

    if not self_reading and decl.read_func is None and decl.data_type is None \
            and not is_mapped_class(decl.value_type):
        raise SchemaError(
            f"Field {cls.__name__}.{attr} has no layout binding, data type or read function")
    return FieldDescriptor(
        name=attr, field_name=field_name, binding=Binding.LATE,
        data_type=decl.data_type, signedness=decl.signedness, length=decl.length,
        value_type=decl.value_type, read_func=decl.read_func, markup_funcs=markup_funcs)


def _output_descriptor(attr: str, decl: FieldOutput, fd: Optional[FieldDescriptor],
                       index: int) -> OutputFieldDescriptor:
    return OutputFieldDescriptor(
        name=attr,
        ordinal=decl.ordinal if decl.ordinal is not None else index,
        output_func=decl.output_func or field_functions.output_default,
        data_type=decl.data_type or (fd.data_type if fd is not None else None),
        variable_length=decl.variable_length,
        offset=decl.offset,
        getter=decl.getter,
        field=fd,
    )


def _annotated_type(klass, attr: str) -> Optional[type]:
    try:
        annotation = inspect.get_annotations(klass, eval_str=True).get(attr)
    except NameError as e:
        raise SchemaError(f"Cannot resolve annotation of {klass.__name__}.{attr}: {e}") from e
    return annotation if isinstance(annotation, type) else None


def _find_construction(cls) -> Tuple[Construction, Optional[str]]:
    """Prefer a constructor taking a DecodeContext, then a no-argument one."""
    if cls.__init__ is object.__init__:
        return Construction.NO_ARGS, None
    try:
        sig = inspect.signature(cls)
    except (TypeError, ValueError) as e:
        raise SchemaError(f"Bad instance creator for {cls.__name__}: {e}") from e

    for param in sig.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD, param.POSITIONAL_ONLY):
            continue
        if param.name == 'context' or param.annotation in (DecodeContext, 'DecodeContext'):
            try:
                sig.bind(**{param.name: None})
                return Construction.CONTEXT, param.name
            except TypeError:
                break
    try:
        sig.bind()
    except TypeError:
        raise SchemaError(f"Bad instance creator for {cls.__name__}") from None
    return Construction.NO_ARGS, None


# =============================================================================
# Entry points
# =============================================================================

def decode(context: DecodeContext):
    """
    Construct and populate context.instance; returns the instance.

    On failure the instance is dropped from the context so a partially
    read object is never handed out.
    """
    schema = context.schema
    try:
        if context.instance is None:
            context.instance = schema.create_instance(context)
        schema.read_structure(context)
        schema.assign_context_fields(context)
        schema.run_after_methods(context)
    except MappingError:
        context.instance = None
        raise
    return context.instance


def synthesize_layout(context: DecodeContext) -> Layout:
    return context.schema.create_layout(context)


def run_markup(context: DecodeContext, session) -> int:
    return context.schema.run_markup(context, session)
