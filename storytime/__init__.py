"""
Story Time backend.

Voice storytelling platform: a REST API for onboarding and stories,
and a LiveKit agent that narrates bedtime stories in the parent's voice.
"""

__version__ = "1.0.0"
