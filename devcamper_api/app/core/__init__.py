"""
Core building blocks shared by all resources: configuration, logging,
errors, security, storage, the query compiler and the permission gate.
"""
