"""
Nodeflow — editing and execution backend for node-graph inference workflows.

Sub-packages:
    workflow  — Workflow documents, editable graphs, engine client
    execution — Execution event stream and state monitor
    config    — Env-backed configuration groups
    logging   — Logging setup
"""

__version__ = "0.1.0"
