# PATH: scanner/jobs/__init__.py
"""
Scanner jobs package.

Entry point:
    python -m scanner.jobs.run_scan

Not imported here, so importing the package does not install signal
handlers or configure logging.
"""

__all__: list[str] = []
