"""
QScore Core Package
===================

Questionnaire response scoring and risk classification engine.

This package contains:
    - scoring/: Validation, score calculation, risk classification and
      the orchestrator tying them together
    - config: Environment-driven settings
    - logging: Structured logging setup

Author: QScore Team
Version: 1.0.0
"""

__version__ = "1.0.0"
