"""
Test suite for the DevCamper API.
"""
