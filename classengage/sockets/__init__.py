"""
Socket.IO Package
"""
from classengage.sockets.events import register_socket_events

__all__ = ['register_socket_events']
