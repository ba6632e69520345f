"""
Test suite for WebSchedulr.

Contains unit and integration tests for the installation wizard, the auth
flow and the CRUD endpoints.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
