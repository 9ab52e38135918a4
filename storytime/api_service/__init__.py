"""
Main API Service

Central REST API for Story Time. It handles:
- Onboarding profiles for parent and child
- Voice cloning through ElevenLabs
- Story creation, narration chunks and history
- LiveKit connection details for the storytelling agent
- Clerk authentication
"""
