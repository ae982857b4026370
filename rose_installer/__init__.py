"""rose-installer — fetch, configure, build and install the ROSE compiler library."""

__version__ = "0.1.0"
