"""
Service layer.

Each service encapsulates the business logic for one resource and
composes the permission gate, the query compiler and the aggregate
maintenance around the store.  API handlers stay thin: they resolve the
caller, call a service and wrap the result in the response envelope.
"""
