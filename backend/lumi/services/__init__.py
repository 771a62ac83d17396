"""Game domain services: puzzle rules, player registry, game phase and fan-out.

This package contains the transport-free core. Socket handlers and HTTP
routes import from here, keeping Socket.IO concerns separated from the
game mechanics.
"""
