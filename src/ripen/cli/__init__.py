"""Command-line interface modules for ripen bake execution.

This package contains core execution logic, making scripts/ optional and deletable.
"""

from ripen.cli.run_bake import run_bake, main

__all__ = ['run_bake', 'main']
