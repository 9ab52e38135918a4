"""
Shared components used by the API service and the agent service.
"""
