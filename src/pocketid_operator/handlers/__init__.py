"""
Handlers package - Contains the kopf handlers for PocketIDClient resources.

- client.py: watch events and the retry resync timer
"""
