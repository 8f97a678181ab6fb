"""
Compiler factory - Returns appropriate diagram compiler based on configuration.
"""

from sqjs.config import Configuration
from sqjs.diagram_model import DiagramCompiler
from sqjs.compilers.mermaid_compiler import MermaidCompiler
from sqjs.compilers.plantuml_compiler import PlantUMLCompiler
import logging

log = logging.getLogger(__name__)


def get_compiler(config: Configuration) -> DiagramCompiler:
    """
    Get the appropriate diagram compiler based on configuration.

    :param config: Configuration object
    :return: DiagramCompiler instance
    :raises ValueError: If compiler type is not supported
    """
    compiler_type = config.compiler

    if compiler_type == "mermaid":
        return MermaidCompiler()
    elif compiler_type == "plantuml":
        log.debug(f"Using PlantUML server at {config.plantuml_server_url}")
        return PlantUMLCompiler(
            server_url=config.plantuml_server_url,
            timeout=config.plantuml_timeout,
        )
    else:
        raise ValueError(f"Unknown diagram compiler: {compiler_type}. " f"Supported compilers: mermaid, plantuml")
