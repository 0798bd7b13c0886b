"""
Logging Module

Process-wide logging setup for the nodeflow backend.
"""
from nodeflow.logging.log_setup import configure_logging

__all__ = ['configure_logging']
