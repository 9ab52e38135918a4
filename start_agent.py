#!/usr/bin/env python3
"""
Launcher for the Story Time LiveKit agent worker.
Usage: python start_agent.py dev|start|console
"""
from storytime.shared.logging import ServiceLogger

logger = ServiceLogger("agent-launcher")


def main():
    """Start the Story Time agent"""
    logger.service_start()

    try:
        from storytime.agent_service.agent import main as agent_main
        agent_main()
    except Exception as e:
        logger.error("Failed to start agent", e)
        raise


if __name__ == "__main__":
    main()
