"""Web API for py-procsim.

This package provides a Flask application that exposes a simulation
over JSON so that a browser front end can render it.  It is an
**optional** extra — install with::

    pip install py-procsim[web]

The ``create_app`` factory in ``app.py`` builds the simulation, its
clock, and the routes.
"""
