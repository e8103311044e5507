"""Custom Dishka scopes for infrawatch."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """infrawatch dependency injection scopes.

    Hierarchy: APP -> RUN

    - APP: Process lifetime (clients, storage adapters, configuration)
    - RUN: One inventory run (fetch, cache, change tracking)
    """

    APP = new_scope("APP")
    RUN = new_scope("RUN")
