"""
Renderer abstraction shared by every template engine.

A renderer turns a template plus a values mapping into a virtual file set:
a mapping from file name to raw rendered text.
"""

import posixpath
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ..errors import RenderError


@dataclass
class RendererInput:
    """Values and release identity common to all renderer inputs."""

    name: str
    namespace: str
    values: dict[str, Any] = field(default_factory=dict)
    action: str = ""


@dataclass
class ChartInput(RendererInput):
    """Input for the chart renderer: location of a packaged chart."""

    chart_path: str = ""


@dataclass
class TemplateInput(RendererInput):
    """Input for the inline template renderer: the template text itself."""

    content: str = ""


def filter_files(
    files: dict[str, str], ignore_suffixes: Iterable[str]
) -> dict[str, str]:
    """
    Drop partials and ignored files from a rendered file set.

    Files whose base name starts with an underscore, or whose name ends with
    one of ``ignore_suffixes`` (NOTES.txt by default), are removed.
    """
    suffixes = tuple(ignore_suffixes)
    kept = {}
    for file_name, content in files.items():
        if posixpath.basename(file_name).startswith("_"):
            continue
        if suffixes and file_name.endswith(suffixes):
            continue
        kept[file_name] = content
    return kept


class RenderedOutput:
    """Virtual file set produced by a renderer."""

    def __init__(self, name: str, files: dict[str, str]):
        self.name = name
        self.files = dict(files)

    def list_files(self) -> list[str]:
        """File names in render order."""
        return list(self.files)

    def file_content(self, file_name: str) -> str:
        """
        Raw content of one rendered file.

        Raises:
            RenderError: If the file was not rendered
        """
        try:
            return self.files[file_name]
        except KeyError:
            raise RenderError(
                f"file {file_name} not found in rendered output of {self.name}"
            ) from None

    def find_file(self, preferred: str) -> str | None:
        """
        Pick the file named ``preferred`` (by base name), else the first file.

        Returns:
            File name, or None if the output is empty
        """
        files = self.list_files()
        for file_name in files:
            if file_name == preferred or posixpath.basename(file_name) == preferred:
                return file_name
        return files[0] if files else None


class Renderer(ABC):
    """Template engine capability: render(input) -> RenderedOutput."""

    @abstractmethod
    def render(self, renderer_input: RendererInput) -> RenderedOutput:
        """
        Render a template.

        Raises:
            RenderError: Wrapping any template engine failure
        """
