"""JSON HTTP layer of a meeting-room booking service: router, auth checks, handlers, migrations, conference-link mock."""

__version__ = "0.1.0"