"""
Metadata readers.

A reader answers two questions for the collector:

- ``class_metadata(controller_class)``: metadata attached to the class
- ``method_metadata(controller_class, method)``: metadata attached to a method

Both return metadata objects in source order and raise ``MetadataNotFound``
when the class or method does not exist.
"""

from __future__ import annotations

from typing import Protocol

from ..metadata import SecurityMetadata
from .reflection import ImportMetadataReader
from .static import StaticMetadataReader


class MetadataReader(Protocol):
    def class_metadata(self, controller_class: str) -> list[SecurityMetadata]: ...

    def method_metadata(self, controller_class: str, method: str) -> list[SecurityMetadata]: ...


__all__ = [
    "ImportMetadataReader",
    "MetadataReader",
    "StaticMetadataReader",
]
