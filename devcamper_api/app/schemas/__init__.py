"""
Pydantic schema definitions for API payloads.

Each resource defines its own request models.  Documents use camelCase
keys, so the models expose snake_case attributes with camelCase aliases
and dump ``by_alias`` before anything reaches the store.  Fields that
are derived on the server (``averageCost``, ``averageRating``, owners)
are not declared and are therefore ignored when sent by a client.
"""
