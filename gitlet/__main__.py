"""Entry point for running gitlet as a module.

This module allows gitlet to be run as a Python module using the -m flag:
    python -m gitlet <command> [<operands>]
"""

from . import cli

if __name__ == "__main__":
    cli._main()
