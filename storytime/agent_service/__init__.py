"""
Story Time voice agent.
Runs as a LiveKit Agents worker dispatched by agent name.
"""
