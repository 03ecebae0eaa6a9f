"""
Rexera API

Workflow automation backend for real-estate transaction tasks: workflows,
task executions, communications, documents and the HIL review loop.
"""

import importlib.metadata

__version__ = importlib.metadata.version("rexera-api")
