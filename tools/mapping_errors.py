"""
mapping_errors.py - Error taxonomy for the structure mapping engine

    MappingError
    ├── SchemaError            bad declarations, raised while building a schema
    ├── DecodeError            one structure could not be read
    │   └── UnsupportedContextField
    ├── LayoutSynthesisError   a variable-length layout could not be produced
    ├── MarkupError            one markup strategy failed (logged, never raised
    │                          out of a markup pass)
    └── ConfigError            invalid configuration or layout document
"""


class MappingError(Exception):
    """Base class for all structure mapping errors."""


class SchemaError(MappingError):
    """Declarations of a mapped class are inconsistent with its layout."""


class DecodeError(MappingError):
    """A structure instance could not be decoded from the byte source."""

    def __init__(self, message: str, offset: int = None):
        if offset is not None:
            message = f"{message} (at offset 0x{offset:x})"
        super().__init__(message)
        self.offset = offset


class UnsupportedContextField(DecodeError):
    """A context field's declared type accepts neither the mapper nor the context."""


class LayoutSynthesisError(MappingError):
    """A layout for a variable-length structure could not be synthesized."""


class MarkupError(MappingError):
    """A single markup strategy failed."""


class ConfigError(MappingError, ValueError):
    """Invalid mapper configuration or layout document."""
