"""
HTTP layer of the DevCamper API.
"""
