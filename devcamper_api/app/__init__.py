"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  The code is organised into a small number of layers:
``core`` holds configuration, security, storage and the query and
permission primitives; ``services`` holds the business logic for each
resource; ``schemas`` holds request payload models and
``api/v1/endpoints`` wires everything to HTTP routes.
"""

from .main import app  # noqa: F401
