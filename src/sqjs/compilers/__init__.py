"""Diagram compilers for different output formats."""

from sqjs.compilers.mermaid_compiler import MermaidCompiler
from sqjs.compilers.plantuml_compiler import PlantUMLCompiler, PlantUMLServerError
from sqjs.compilers.factory import get_compiler

__all__ = ["MermaidCompiler", "PlantUMLCompiler", "PlantUMLServerError", "get_compiler"]
