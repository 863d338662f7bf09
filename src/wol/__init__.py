"""Wake up remote hosts with Wake-on-LAN magic packets."""

__version__ = "0.1.0"
