"""Browser-based web UI for the scheduling simulator.

This package provides a Flask application that runs simulations from a
browser.  It is an **optional** extra — install with::

    pip install py-sched[web]

The ``create_app`` factory in ``app.py`` serves three endpoints:

- ``GET /`` — HTML page with a workload editor and the results.
- ``GET /api/policies`` — the dispatch policies and default settings.
- ``POST /api/simulate`` — run a workload and return statistics as JSON.
"""
