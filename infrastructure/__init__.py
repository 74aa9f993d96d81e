"""
Infrastructure Package
======================

Provides abstraction layers for external dependencies following the Dependency Inversion Principle.

Modules:
    - events: Redis pub/sub event bus
    - notifications: Notification dispatch (event bus, mock)

The service container in ``container.py`` wires these into the marketplace
domain services.
"""
