"""
WebSchedulr

A FastAPI-based appointment scheduling API with a first-run installation
wizard, token authentication and calendar appointments.
"""

__version__ = "1.0.0"
