"""
Analysis tools for emulator state data.
"""
from .state_recorder import StateRecorder
