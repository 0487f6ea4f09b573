"""
MCP Server for piping network hydraulics.

This server exposes steady-state hydraulic calculations for piping networks:
per-segment pressure drop (pipelines, control valves, orifices) for liquids
and gases, and breadth-first pressure propagation from a source node.
"""

import logging
from mcp.server.fastmcp import FastMCP

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("hydronet-mcp")

# Initialize the MCP server
mcp = FastMCP("hydronet-calculator")

# Import omnitools (consolidated tools)
from omnitools.network_hydraulics import network_hydraulics
from omnitools.element_sizing import element_sizing

# Register omnitools with MCP
mcp.tool()(network_hydraulics)
mcp.tool()(element_sizing)


def main():
    logger.info("Starting hydronet MCP server...")
    logger.info("Registered omnitools:")
    logger.info("  - network_hydraulics: segment recalculation, pressure propagation, validation")
    logger.info("  - element_sizing: friction factor, control valve and orifice calculations")

    # Start the server
    mcp.run()


if __name__ == "__main__":
    main()
