"""Playground Sync - rendezvous broker between a browser playground and an assistant.

A browser submits prompts over HTTP and blocks until an answer arrives. An
assistant attached over stdio fetches the prompts and posts the answers.
"""

__version__ = "1.0.0"
