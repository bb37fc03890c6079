"""
SessionCore - A restart-on-crash wrapper for a Java game server.

Launches the server with an injected authentication agent, restarts it on
abnormal termination, tees its output to the console and a log file, and
forwards operator commands into the server console.
"""

__version__ = "0.1.0"
