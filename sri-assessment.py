#!/usr/bin/env python3
"""
sri-assessment - Adaptive self-assessment

Walks through consent, a short demographic intake, and a questionnaire whose
scales adapt to the answers given. Progress is saved on this device after
every answer and offered for resumption on the next start.

Usage:
    python sri-assessment.py start [--type quick|full]
    python sri-assessment.py progress show
    python sri-assessment.py sessions list

This file is a thin wrapper around the cli package.
"""

from cli.commands import main

if __name__ == "__main__":
    main()
