#!/usr/bin/env python3
"""
sri-assessment - Web API

Starts a local JSON API for browser front-ends. It shares the device store
with the CLI (sri-assessment.py), so progress saved by one is offered for
resumption by the other.

Usage:
    python sri-assessment-web.py [--port 8000] [--host 127.0.0.1] [--reload]
"""

from web.__main__ import main

if __name__ == "__main__":
    main()
