#!/usr/bin/env python3
"""
layout_catalog.py - Named structure layouts and the catalog that holds them

A Layout is the binary description of one structure: an ordered set of
named components, each with an offset, a length and a data type. Data
types are primitive type names (u32, s16, ascii, ...), the name of
another layout (nested structure) or ``<type>[<count>]`` arrays.

Layouts are usually written in YAML, in the same spirit as payload
schemas:

    endian: little
    layouts:
      - name: Header
        category: /elf
        fields:
          - name: magic
            type: u32
          - name: count
            type: u16
          - name: label
            type: ascii
            length: 6

Usage:
    python tools/layout_catalog.py layouts.yaml
    python tools/layout_catalog.py layouts.yaml --json
"""

import argparse
import json
import logging
import re
import sys
import yaml
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from byte_reader import canonical_type, primitive_info
from mapping_errors import ConfigError, LayoutSynthesisError

logger = logging.getLogger(__name__)

ROOT_CATEGORY = '/'

ARRAY_RE = re.compile(r'^(?P<elem>.+)\[(?P<count>\d+)\]$')
LAYOUT_NAME_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_.$-]*$')


def is_valid_layout_name(name: str) -> bool:
    return isinstance(name, str) and bool(LAYOUT_NAME_RE.match(name))


@dataclass(frozen=True)
class LayoutComponent:
    """One defined component of a layout."""
    name: Optional[str]
    offset: int
    length: int
    data_type: str
    comment: Optional[str] = None

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass(frozen=True)
class Layout:
    """Immutable description of a named structure."""
    name: str
    components: Tuple[LayoutComponent, ...] = ()
    length: int = 0
    category: str = ROOT_CATEGORY

    @property
    def path(self) -> str:
        return self.category.rstrip('/') + '/' + self.name

    @property
    def is_zero_length(self) -> bool:
        return self.length == 0

    def defined_components(self) -> Iterator[LayoutComponent]:
        """Components that carry a field name (filler is skipped)."""
        return (c for c in self.components if c.name)

    def component(self, name: str) -> Optional[LayoutComponent]:
        if not name:
            return None
        for comp in self.components:
            if comp.name == name:
                return comp
        return None

    def renamed(self, name: str) -> 'Layout':
        return Layout(name=name, components=self.components,
                      length=self.length, category=self.category)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'category': self.category,
            'length': self.length,
            'fields': [
                {
                    'name': c.name,
                    'offset': c.offset,
                    'length': c.length,
                    'type': c.data_type,
                    **({'comment': c.comment} if c.comment else {}),
                }
                for c in self.components
            ],
        }


class LayoutCatalog:
    """
    Registry of layouts by name.

    Names are unique across categories, matching how mapped classes refer
    to their structure by plain name.
    """

    def __init__(self, byte_order: str = 'little'):
        self.byte_order = byte_order
        self._layouts: Dict[str, Layout] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._layouts

    def __iter__(self) -> Iterator[Layout]:
        return iter(list(self._layouts.values()))

    def __len__(self) -> int:
        return len(self._layouts)

    def get(self, name: str) -> Optional[Layout]:
        return self._layouts.get(name) if name else None

    def resolve(self, name: str) -> Layout:
        layout = self.get(name)
        if layout is None:
            raise KeyError(f"Layout not found: {name}")
        return layout

    def in_category(self, category: str) -> List[Layout]:
        return [lt for lt in self._layouts.values() if lt.category == category]

    def register(self, layout: Layout, category: str = None) -> Layout:
        """
        Register a layout, optionally moving it under a category path.

        Re-registering an identical layout returns the existing instance;
        a different layout under a taken name is a conflict.
        """
        if not is_valid_layout_name(layout.name):
            raise LayoutSynthesisError(f"Invalid layout name: {layout.name!r}")
        if category is not None and category != layout.category:
            layout = Layout(name=layout.name, components=layout.components,
                            length=layout.length, category=category)

        existing = self._layouts.get(layout.name)
        if existing is not None:
            if existing == layout:
                return existing
            raise LayoutSynthesisError(
                f"Layout name conflict: {layout.name} already registered at {existing.path}")

        self._layouts[layout.name] = layout
        logger.debug("registered layout %s (%d bytes)", layout.path, layout.length)
        return layout

    def type_size(self, data_type: str) -> Optional[int]:
        """Size in bytes of a data type, or None if it has no fixed size."""
        if not data_type:
            return None
        m = ARRAY_RE.match(data_type)
        if m:
            elem_size = self.type_size(m.group('elem'))
            return None if elem_size is None else elem_size * int(m.group('count'))
        info = primitive_info(data_type)
        if info is not None:
            return info[1]
        layout = self.get(data_type)
        return layout.length if layout is not None else None

    # ------------------------------------------------------------------
    # YAML loading
    # ------------------------------------------------------------------

    def load_document(self, doc: Dict[str, Any]) -> List[Layout]:
        """Register all layouts in a parsed layout document."""
        if not isinstance(doc, dict):
            raise ConfigError("Layout document must be a mapping")
        if 'endian' in doc:
            endian = doc['endian']
            if endian not in ('little', 'big'):
                raise ConfigError(f"Invalid endian: {endian}")
            self.byte_order = endian

        entries = doc.get('layouts', [])
        if not isinstance(entries, list):
            raise ConfigError("'layouts' must be a list")

        loaded = []
        for entry in entries:
            layout = self._parse_layout(entry)
            try:
                loaded.append(self.register(layout))
            except LayoutSynthesisError as e:
                raise ConfigError(str(e)) from e
        return loaded

    def load_yaml(self, text: str) -> List[Layout]:
        try:
            doc = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid layout YAML: {e}") from e
        return self.load_document(doc or {})

    def load_file(self, path: str) -> List[Layout]:
        with open(path) as f:
            return self.load_yaml(f.read())

    def _parse_layout(self, entry: Dict[str, Any]) -> Layout:
        if not isinstance(entry, dict) or 'name' not in entry:
            raise ConfigError(f"Layout entry needs a name: {entry!r}")
        name = entry['name']
        if not is_valid_layout_name(name):
            raise ConfigError(f"Invalid layout name: {name!r}")

        components = []
        pos = 0
        seen = set()
        for fdef in entry.get('fields', []):
            comp = self._parse_component(name, fdef, pos)
            if comp.name in seen:
                raise ConfigError(f"Duplicate field '{comp.name}' in layout {name}")
            seen.add(comp.name)
            if comp.offset < pos:
                raise ConfigError(
                    f"Field '{comp.name}' in layout {name} overlaps previous field")
            components.append(comp)
            pos = comp.end

        length = entry.get('length', pos)
        if length < pos:
            raise ConfigError(f"Layout {name} length {length} is shorter than its fields")
        return Layout(name=name, components=tuple(components), length=length,
                      category=entry.get('category', ROOT_CATEGORY))

    def _parse_component(self, layout_name: str, fdef: Dict[str, Any],
                         pos: int) -> LayoutComponent:
        if not isinstance(fdef, dict) or 'name' not in fdef:
            raise ConfigError(f"Field in layout {layout_name} needs a name: {fdef!r}")
        data_type = canonical_type(fdef.get('type', 'u8'))
        count = fdef.get('count')
        if count is not None:
            data_type = f"{data_type}[{count}]"

        length = fdef.get('length')
        if length is None:
            length = self.type_size(data_type)
            if length is None:
                raise ConfigError(
                    f"Field '{fdef['name']}' in layout {layout_name}: "
                    f"type '{data_type}' needs a length")
        return LayoutComponent(
            name=fdef['name'],
            offset=fdef.get('offset', pos),
            length=length,
            data_type=data_type,
            comment=fdef.get('comment'),
        )


def load_catalog(path: str) -> LayoutCatalog:
    catalog = LayoutCatalog()
    catalog.load_file(path)
    return catalog


def print_layouts(catalog: LayoutCatalog) -> None:
    for layout in catalog:
        print(f"{layout.path}  ({layout.length} bytes)")
        for c in layout.components:
            comment = f"  # {c.comment}" if c.comment else ""
            print(f"  +0x{c.offset:04x}  {c.length:4d}  {c.data_type:<12} {c.name}{comment}")


def main():
    parser = argparse.ArgumentParser(
        description='Validate and list structure layouts from a YAML file'
    )
    parser.add_argument('layouts', help='Path to layout YAML file')
    parser.add_argument('--json', action='store_true',
                        help='Output layouts as JSON')
    args = parser.parse_args()

    try:
        catalog = load_catalog(args.layouts)
    except (OSError, ConfigError) as e:
        print(f"Error loading layouts: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps([lt.to_dict() for lt in catalog], indent=2))
    else:
        print_layouts(catalog)


if __name__ == '__main__':
    main()
