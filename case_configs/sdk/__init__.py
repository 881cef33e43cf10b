"""
SDK for Case Configs.

Provides the client for the external submission endpoint.
"""

from .submission_client import SubmissionClient

__all__ = ["SubmissionClient"]
