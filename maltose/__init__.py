"""Building blocks for Python services: chainable HTTP requests and a value wrapper."""

__version__ = "0.1.0"